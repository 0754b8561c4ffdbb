"""
preprocessor.py

OpenCV-based cleanup of ID card photos before Tesseract.

Card photos are small, unevenly lit and often taken at an angle, so the
pipeline upscales them, evens out the contrast and binarizes them.
Each step is toggleable via config.
"""

import logging
from typing import Optional

import cv2
import numpy as np
from PIL import Image

from . import config

logger = logging.getLogger(__name__)


def prepare_card_image(
    image: Image.Image,
    enable_denoise: Optional[bool] = None,
    enable_contrast_enhancement: Optional[bool] = None,
    binarization_method: Optional[str] = None,
    min_width: Optional[int] = None,
) -> np.ndarray:
    """
    Run the preprocessing pipeline on one card image.

    Args:
        image: RGB PIL image.
        enable_denoise: Override config ENABLE_DENOISE.
        enable_contrast_enhancement: Override config ENABLE_CONTRAST_ENHANCEMENT.
        binarization_method: Override config BINARIZATION_METHOD.
        min_width: Override config MIN_IMAGE_WIDTH.

    Returns:
        Single-channel uint8 image ready for OCR.
    """
    if enable_denoise is None:
        enable_denoise = config.ENABLE_DENOISE
    if enable_contrast_enhancement is None:
        enable_contrast_enhancement = config.ENABLE_CONTRAST_ENHANCEMENT
    if binarization_method is None:
        binarization_method = config.BINARIZATION_METHOD
    if min_width is None:
        min_width = config.MIN_IMAGE_WIDTH

    result = to_grayscale(np.array(image.convert("RGB")))
    result = upscale(result, min_width)

    if enable_denoise:
        result = denoise(result)
    if enable_contrast_enhancement:
        result = enhance_contrast(result)

    result = binarize(result, method=binarization_method)
    logger.debug("Card image prepared: %dx%d", result.shape[1], result.shape[0])
    return result


def to_grayscale(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return image
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def upscale(image: np.ndarray, min_width: int) -> np.ndarray:
    """Enlarge narrow photos; Tesseract misreads glyphs under ~20px tall."""
    h, w = image.shape[:2]
    if w >= min_width:
        return image

    scale = min(min_width / w, 4.0)
    new_size = (int(w * scale), int(h * scale))
    logger.info("Upscaling card image from %dx%d to %dx%d", w, h, new_size[0], new_size[1])
    return cv2.resize(image, new_size, interpolation=cv2.INTER_CUBIC)


def denoise(image: np.ndarray) -> np.ndarray:
    # Bilateral filtering keeps character edges sharp on textured card backgrounds.
    return cv2.bilateralFilter(image, 9, 75, 75)


def enhance_contrast(image: np.ndarray) -> np.ndarray:
    """CLAHE evens out glare and shadows from phone photos."""
    clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
    return clahe.apply(image)


def binarize(image: np.ndarray, method: str = "otsu") -> np.ndarray:
    """
    Threshold to black text on white.

    Args:
        image: Grayscale image.
        method: One of 'otsu', 'adaptive', 'none'.
    """
    if method == "none":
        return image
    if method == "adaptive":
        return cv2.adaptiveThreshold(
            image, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 31, 10
        )
    if method != "otsu":
        logger.warning("Unknown binarization method '%s', falling back to otsu", method)
    _, binary = cv2.threshold(image, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return binary
