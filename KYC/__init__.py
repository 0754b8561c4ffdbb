"""
KYC extraction module

Extracts personal-data fields (name, date of birth, gender, Aadhaar and
PAN numbers, address, state, ...) from OCR text of scanned Indian
identity documents and consolidates several documents into one record.

Public API:
    extract_documents  - OCR, parse and merge a set of uploaded documents
    extract_fields     - Extract fields from already-recognized text
    merge_fields       - Fold per-document field lists into one record
    ExtractionRunner   - Runs that discard results of superseded submissions
    ConsolidatedRecord - Merged result model
"""

from .document_parser import extract_fields, parse_document
from .merger import merge_fields
from .pipeline import ExtractionRunner, extract_documents
from .schemas import (
    CANONICAL_KEYS,
    Confidence,
    ConsolidatedRecord,
    DocumentResult,
    DocumentType,
    ExtractedField,
    FieldKey,
    RawDocument,
    UploadedDocument,
)

__all__ = [
    "extract_documents",
    "extract_fields",
    "parse_document",
    "merge_fields",
    "ExtractionRunner",
    "CANONICAL_KEYS",
    "Confidence",
    "ConsolidatedRecord",
    "DocumentResult",
    "DocumentType",
    "ExtractedField",
    "FieldKey",
    "RawDocument",
    "UploadedDocument",
]
