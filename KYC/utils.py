"""
utils.py

File validation, security checks, and image loading for the OCR collaborator.

Handles:
- File path sanitization against path traversal
- Extension and file size enforcement
- Rejection of unrasterized PDFs
- Image loading via Pillow
"""

import logging
from pathlib import Path
from typing import Union

from PIL import Image, ImageOps

from . import config

logger = logging.getLogger(__name__)


class DocumentFileError(Exception):
    """Raised when an uploaded file cannot be read as a document image."""

    pass


class DocumentSecurityError(Exception):
    """Raised when a security check fails (e.g., path traversal)."""

    pass


class UnsupportedDocumentError(DocumentFileError):
    """Raised for formats the OCR engine cannot read directly, such as PDF."""

    pass


def sanitize_path(file_path: Union[str, Path]) -> Path:
    """
    Validate and sanitize a file path.

    Args:
        file_path: Raw file path string or Path object.

    Returns:
        Resolved, sanitized Path object.

    Raises:
        DocumentSecurityError: If path traversal or a symlink is detected.
        DocumentFileError: If the file does not exist or is not a regular file.
    """
    raw = str(file_path)
    if ".." in Path(raw).parts:
        raise DocumentSecurityError(f"Path traversal detected in: {raw}")

    # Checked before resolve(), which would follow the link.
    if Path(raw).is_symlink():
        raise DocumentSecurityError(f"Symlinks are not allowed: {raw}")

    path = Path(raw).resolve()
    if not path.exists():
        raise DocumentFileError(f"File not found: {path}")

    if not path.is_file():
        raise DocumentFileError(f"Not a regular file: {path}")

    return path


def validate_file(file_path: Path) -> None:
    """
    Validate file extension and size.

    Raises:
        UnsupportedDocumentError: For PDFs, which must be rasterized first.
        DocumentFileError: If validation fails.
    """
    ext = file_path.suffix.lower()
    if ext in config.UNRASTERIZED_EXTENSIONS:
        raise UnsupportedDocumentError(
            f"'{ext}' files must be converted to images before OCR"
        )
    if ext not in config.ALLOWED_EXTENSIONS:
        raise DocumentFileError(
            f"Unsupported file extension '{ext}'. "
            f"Allowed: {config.ALLOWED_EXTENSIONS}"
        )

    size = file_path.stat().st_size
    if size == 0:
        raise DocumentFileError(f"File is empty: {file_path}")

    size_mb = size / (1024 * 1024)
    if size_mb > config.MAX_FILE_SIZE_MB:
        raise DocumentFileError(
            f"File too large: {size_mb:.1f}MB exceeds "
            f"limit of {config.MAX_FILE_SIZE_MB}MB"
        )


def load_image(file_path: Union[str, Path]) -> Image.Image:
    """
    Load a document image after path and file validation.

    Phone photos are rotated according to their EXIF orientation so the
    card text is upright.

    Returns:
        RGB PIL Image.

    Raises:
        DocumentFileError: If loading fails.
        DocumentSecurityError: If path validation fails.
    """
    path = sanitize_path(file_path)
    validate_file(path)

    try:
        with Image.open(path) as img:
            image = ImageOps.exif_transpose(img).convert("RGB")
    except Exception as e:
        raise DocumentFileError(f"Failed to load image from {path.name}: {e}") from e

    logger.info("Loaded image %s: %dx%d", path.name, image.width, image.height)
    return image
