"""
engine.py

Tesseract OCR engine wrapper, the default OCR collaborator.

The extraction core only needs ``recognizer(path) -> text``; this module
provides that callable for image files: validate and load the file,
clean the card photo with OpenCV, and run Tesseract through pytesseract.
pytesseract is imported lazily so the extraction core works without it.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from . import config
from .preprocessor import prepare_card_image
from .utils import load_image

logger = logging.getLogger(__name__)


class TesseractEngine:
    """
    Wrapper around pytesseract.

    The binary is located on first use and the module is cached for
    all subsequent calls.
    """

    def __init__(self, language: Optional[str] = None, tesseract_config: Optional[str] = None):
        self.language = language or config.OCR_LANGUAGE
        self.tesseract_config = tesseract_config if tesseract_config is not None else config.TESSERACT_CONFIG
        self._pytesseract = None

    def _load(self):
        if self._pytesseract is not None:
            return self._pytesseract

        try:
            import pytesseract
        except ImportError:
            raise ImportError(
                "pytesseract is required. Install it with: pip install pytesseract"
            )

        if config.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = config.TESSERACT_CMD

        logger.info("Using Tesseract OCR (lang=%s, config=%s)", self.language, self.tesseract_config)
        self._pytesseract = pytesseract
        return pytesseract

    def recognize(self, image) -> str:
        """
        Run Tesseract on a preprocessed image.

        Args:
            image: PIL image or numpy array.

        Returns:
            Recognized text, possibly empty.
        """
        pytesseract = self._load()
        text = pytesseract.image_to_string(image, lang=self.language, config=self.tesseract_config)
        logger.info("Recognized %d character(s)", len(text))
        return text

    def recognize_file(self, file_path: Union[str, Path]) -> str:
        image = load_image(file_path)
        return self.recognize(prepare_card_image(image))

    def reset(self) -> None:
        self._pytesseract = None


# Module-level singleton engine
_engine: Optional[TesseractEngine] = None


def get_engine() -> TesseractEngine:
    """Get or create the singleton Tesseract engine."""
    global _engine
    if _engine is None:
        _engine = TesseractEngine()
    return _engine


def reset_engine() -> None:
    """Reset the singleton engine (useful for testing)."""
    global _engine
    if _engine is not None:
        _engine.reset()
    _engine = None


def recognize_text(file_path: Union[str, Path]) -> str:
    """
    OCR an image file and return its raw text.

    This is the default recognizer used by document_parser.parse_document.

    Raises:
        DocumentFileError: Missing, empty, oversized or unreadable file.
        UnsupportedDocumentError: PDF input.
        DocumentSecurityError: Path traversal or symlink.
    """
    return get_engine().recognize_file(file_path)
