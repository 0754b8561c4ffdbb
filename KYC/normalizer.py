"""
normalizer.py

Cleanup of raw OCR text before field extraction.

Handles:
- Folding of visually confusable characters (| I l 1, 0 O)
- Removal of stray symbols left by the OCR engine
- Whitespace collapsing and trimming
- Dropping lines that end up empty

Line order is preserved and lines are never merged, because the
Aadhaar heuristics rely on line positions.
"""

import re
from typing import List

# Characters the OCR engine confuses with each other.
_CONFUSABLES = set("0Oo1Il|")

_TO_DIGIT = str.maketrans({"O": "0", "o": "0", "I": "1", "l": "1", "|": "1"})
_TO_LETTER = str.maketrans({"0": "O", "1": "I", "|": "I"})

_SEGMENT_RE = re.compile(r"[^\s:/,.\-]+")
_NOISE_RE = re.compile(r"[^A-Za-z0-9\s,.\-/:]+")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> List[str]:
    """
    Split raw OCR text into cleaned, non-empty lines.

    Args:
        text: Raw multi-line OCR output.

    Returns:
        Cleaned lines in their original order.
    """
    if not text:
        return []

    lines = []
    for raw_line in text.splitlines():
        line = normalize_line(raw_line)
        if line:
            lines.append(line)
    return lines


def normalize_line(line: str) -> str:
    """Clean a single line of OCR text."""
    line = _SEGMENT_RE.sub(lambda m: fold_confusables(m.group()), line)
    line = _NOISE_RE.sub(" ", line)
    return fix_whitespace(line)


def fold_confusables(token: str) -> str:
    """
    Resolve confusable characters inside one token.

    Tokens are runs delimited by whitespace or date/label separators, so
    "15/O8/199O" is folded part by part.

    The token's unambiguous characters decide the direction: a token whose
    other alphanumerics are all digits is read as a number ("2O19" -> "2019"),
    one whose other alphanumerics are all letters is read as a word
    ("R0HIT" -> "ROHIT"). Mixed tokens such as PAN numbers are left alone,
    apart from the pipe which never appears on an ID card.
    """
    if not any(c in _CONFUSABLES for c in token):
        return token

    anchors = [c for c in token if c.isalnum() and c not in _CONFUSABLES]
    if anchors and all(c.isdigit() for c in anchors):
        return token.translate(_TO_DIGIT)
    if anchors and all(c.isalpha() for c in anchors):
        return token.translate(_TO_LETTER)
    return token.replace("|", "I")


def fix_whitespace(text: str) -> str:
    """
    Fix common OCR whitespace artifacts.

    - Collapse runs of spaces, tabs and other whitespace into one space
    - Remove spaces before commas and periods
    - Remove leading/trailing whitespace
    """
    text = _WHITESPACE_RE.sub(" ", text)
    text = re.sub(r" +([,.])", r"\1", text)
    return text.strip()
