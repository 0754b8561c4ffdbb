"""
Tests for file validation and image loading.
"""

import os

import pytest
from PIL import Image

from KYC import config
from KYC.utils import (
    DocumentFileError,
    DocumentSecurityError,
    UnsupportedDocumentError,
    load_image,
    sanitize_path,
    validate_file,
)


@pytest.fixture
def card_png(tmp_path):
    path = tmp_path / "card.png"
    Image.new("RGB", (60, 40), "white").save(path)
    return path


class TestSanitizePath:
    def test_valid_file(self, card_png):
        assert sanitize_path(str(card_png)) == card_png.resolve()

    def test_traversal_rejected(self, tmp_path):
        with pytest.raises(DocumentSecurityError):
            sanitize_path(str(tmp_path / ".." / "card.png"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentFileError):
            sanitize_path(tmp_path / "missing.png")

    def test_directory_rejected(self, tmp_path):
        with pytest.raises(DocumentFileError):
            sanitize_path(tmp_path)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlink_rejected(self, tmp_path, card_png):
        link = tmp_path / "link.png"
        link.symlink_to(card_png)
        with pytest.raises(DocumentSecurityError):
            sanitize_path(link)


class TestValidateFile:
    def test_pdf_is_unsupported(self, tmp_path):
        pdf = tmp_path / "scan.pdf"
        pdf.write_bytes(b"%PDF-1.4")
        with pytest.raises(UnsupportedDocumentError):
            validate_file(pdf)

    def test_unknown_extension(self, tmp_path):
        txt = tmp_path / "notes.txt"
        txt.write_text("hello")
        with pytest.raises(DocumentFileError) as exc_info:
            validate_file(txt)
        assert not isinstance(exc_info.value, UnsupportedDocumentError)

    def test_empty_file(self, tmp_path):
        empty = tmp_path / "empty.jpg"
        empty.write_bytes(b"")
        with pytest.raises(DocumentFileError, match="empty"):
            validate_file(empty)

    def test_size_limit(self, card_png, monkeypatch):
        monkeypatch.setattr(config, "MAX_FILE_SIZE_MB", 0.00001)
        with pytest.raises(DocumentFileError, match="too large"):
            validate_file(card_png)

    def test_accepts_uppercase_extension(self, tmp_path):
        path = tmp_path / "CARD.JPG"
        Image.new("RGB", (10, 10)).save(path, format="JPEG")
        validate_file(path)


class TestLoadImage:
    def test_returns_rgb(self, tmp_path):
        path = tmp_path / "gray.png"
        Image.new("L", (30, 20), 128).save(path)
        image = load_image(path)
        assert image.mode == "RGB"
        assert image.size == (30, 20)

    def test_corrupt_image(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not really a png")
        with pytest.raises(DocumentFileError, match="Failed to load"):
            load_image(path)
