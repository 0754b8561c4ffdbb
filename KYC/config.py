"""
config.py

Configuration module for the KYC extraction package.

Purpose:
--------
Contains all constants used across the package: OCR engine parameters,
image preprocessing toggles, file security limits, and the empirical
constants behind the field extraction heuristics.

Design Principle:
-----------------
Configuration is isolated from business logic.
Modules read these values at call time, so tuning a heuristic window
or a file limit never requires editing extraction code.
"""

import os

# -----------------------------
# Engine
# -----------------------------
OCR_LANGUAGE = "eng"  # Most ID cards carry English text alongside Hindi
TESSERACT_CMD = os.getenv("TESSERACT_CMD")  # None -> use tesseract on PATH
TESSERACT_CONFIG = "--oem 1 --psm 6"  # Assume a uniform block of text

# -----------------------------
# Preprocessing
# -----------------------------
MIN_IMAGE_WIDTH = 1200  # Phone photos of cards are upscaled to this width
ENABLE_DENOISE = True
ENABLE_CONTRAST_ENHANCEMENT = True
BINARIZATION_METHOD = "otsu"  # otsu | adaptive | none

# -----------------------------
# Security
# -----------------------------
MAX_FILE_SIZE_MB = 20
ALLOWED_EXTENSIONS = [".png", ".jpg", ".jpeg", ".tiff", ".tif", ".bmp", ".webp"]
UNRASTERIZED_EXTENSIONS = [".pdf"]
UNRASTERIZED_CONTENT_TYPES = ["application/pdf"]

# -----------------------------
# Extraction heuristics
# -----------------------------
# Aadhaar cards print gender near the DOB line; lines searched around it.
GENDER_WINDOW_BEFORE = 2
GENDER_WINDOW_AFTER = 5
ADDRESS_MAX_LINES = 5
NOT_FOUND_SOURCE = "Not found"

# -----------------------------
# Performance
# -----------------------------
BATCH_WORKERS = 4
