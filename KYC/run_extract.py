"""
run_extract.py

Simple CLI script to extract personal data from ID document images.

Usage:
    python -m KYC.run_extract aadhaar=front.jpg pan=pan.png
    python -m KYC.run_extract aadhaar=front.jpg --json
    python -m KYC.run_extract aadhaar=ocr_dump.txt --text
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .pipeline import extract_documents
from .schemas import DocumentType, UploadedDocument


def parse_document_arg(value: str, index: int) -> UploadedDocument:
    """Parse a TYPE=PATH argument; a bare PATH is treated as type 'other'."""
    doc_type, sep, path = value.partition("=")
    if not sep:
        doc_type, path = DocumentType.OTHER.value, value
    try:
        document_type = DocumentType(doc_type.strip().lower())
    except ValueError:
        choices = ", ".join(t.value for t in DocumentType)
        raise argparse.ArgumentTypeError(f"Unknown document type '{doc_type}' (choose from {choices})")
    return UploadedDocument(doc_id=f"doc-{index}", document_type=document_type, file_path=path)


def read_text_file(file_path) -> str:
    return Path(file_path).read_text(encoding="utf-8")


def main():
    parser = argparse.ArgumentParser(
        description="Extract personal data fields from identity document images"
    )
    parser.add_argument(
        "documents",
        nargs="+",
        help="Documents as TYPE=PATH, TYPE one of: "
        + ", ".join(t.value for t in DocumentType),
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output the full consolidated record as JSON",
    )
    parser.add_argument(
        "--text",
        action="store_true",
        help="Treat inputs as OCR text dumps instead of images",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of documents processed concurrently",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show extraction details",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )

    try:
        documents = [parse_document_arg(value, i + 1) for i, value in enumerate(args.documents)]
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    for document in documents:
        if not os.path.exists(document.file_path):
            print(f"Error: File not found: {document.file_path}", file=sys.stderr)
            sys.exit(1)

    recognizer = read_text_file if args.text else None
    record = extract_documents(documents, recognizer=recognizer, max_workers=args.workers)

    if args.json:
        print(json.dumps(record.model_dump(mode="json")["entries"], ensure_ascii=False, indent=2))
    else:
        for field in record.as_list():
            value = field.value or "-"
            print(f"{field.key.value:<15} {value:<40} {field.confidence.value:<7} {field.source}")


if __name__ == "__main__":
    main()
