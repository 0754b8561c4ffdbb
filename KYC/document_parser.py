"""
document_parser.py

Per-document parsing: OCR text -> normalized lines -> extracted fields.

The extractor set is chosen from a strategy table keyed by document type.
Aadhaar cards get the position-aware heuristics (name above the DOB,
gender near it, address between DOB and pincode); every other document
type gets the label-driven generic set.
"""

import logging
from functools import partial
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from . import config
from .extractors import (
    Extractor,
    extract_aadhaar_number,
    extract_address_aadhaar,
    extract_address_generic,
    extract_date_of_birth,
    extract_father_name,
    extract_gender_aadhaar,
    extract_gender_generic,
    extract_mobile_number,
    extract_mother_name,
    extract_name_aadhaar,
    extract_name_generic,
    extract_pan_number,
    extract_pincode,
    extract_state,
)
from .normalizer import normalize_text
from .schemas import (
    DocumentResult,
    DocumentStatus,
    DocumentType,
    ExtractedField,
    FieldKey,
    RawDocument,
    UploadedDocument,
)
from .utils import UnsupportedDocumentError

logger = logging.getLogger(__name__)

Recognizer = Callable[[Union[str, Path]], str]

AADHAAR_STRATEGIES: Dict[FieldKey, Extractor] = {
    FieldKey.AADHAAR_NUMBER: extract_aadhaar_number,
    FieldKey.DATE_OF_BIRTH: extract_date_of_birth,
    FieldKey.FULL_NAME: extract_name_aadhaar,
    FieldKey.GENDER: extract_gender_aadhaar,
    FieldKey.PAN_NUMBER: extract_pan_number,
    FieldKey.PINCODE: extract_pincode,
    FieldKey.ADDRESS: extract_address_aadhaar,
    FieldKey.STATE: partial(extract_state, address_extractor=extract_address_aadhaar),
    FieldKey.FATHER_NAME: extract_father_name,
    FieldKey.MOTHER_NAME: extract_mother_name,
    FieldKey.MOBILE_NUMBER: extract_mobile_number,
}

GENERIC_STRATEGIES: Dict[FieldKey, Extractor] = {
    FieldKey.AADHAAR_NUMBER: extract_aadhaar_number,
    FieldKey.DATE_OF_BIRTH: extract_date_of_birth,
    FieldKey.FULL_NAME: extract_name_generic,
    FieldKey.GENDER: extract_gender_generic,
    FieldKey.PAN_NUMBER: extract_pan_number,
    FieldKey.PINCODE: extract_pincode,
    FieldKey.ADDRESS: extract_address_generic,
    FieldKey.STATE: partial(extract_state, address_extractor=extract_address_generic),
    FieldKey.FATHER_NAME: extract_father_name,
    FieldKey.MOTHER_NAME: extract_mother_name,
    FieldKey.MOBILE_NUMBER: extract_mobile_number,
}

STRATEGIES: Dict[DocumentType, Dict[FieldKey, Extractor]] = {
    DocumentType.AADHAAR: AADHAAR_STRATEGIES,
}


def get_strategies(document_type: Union[DocumentType, str]) -> Dict[FieldKey, Extractor]:
    """Extractor table for a document type; unknown families use the generic set."""
    return STRATEGIES.get(DocumentType(document_type), GENERIC_STRATEGIES)


def extract_fields(
    raw_text: str,
    document_type: Union[DocumentType, str] = DocumentType.OTHER,
) -> List[ExtractedField]:
    """
    Run every extractor applicable to the document type.

    Args:
        raw_text: OCR output for one document.
        document_type: Type tag selecting the strategy family.

    Returns:
        At most one field per key, in strategy-table order.
    """
    document_type = DocumentType(document_type)
    if not raw_text or not raw_text.strip():
        return []

    lines = normalize_text(raw_text)
    logger.debug("Parsing %d normalized line(s) as %s", len(lines), document_type.value)

    fields: List[ExtractedField] = []
    for key, extractor in get_strategies(document_type).items():
        field = extractor(lines, raw_text, document_type)
        if field is None:
            continue
        if field.key != key or not field.value:
            logger.warning("Extractor for %s returned an unusable field, ignoring it", key.value)
            continue
        fields.append(field)

    logger.info(
        "Extracted %d field(s) from %s text: %s",
        len(fields),
        document_type.value,
        ", ".join(f"{f.key.value}={f.confidence.value}" for f in fields) or "none",
    )
    return fields


def parse_raw_document(raw: RawDocument) -> List[ExtractedField]:
    """Extract fields from a document whose text is already recognized."""
    return extract_fields(raw.raw_text, raw.document_type)


def is_unrasterized(document: UploadedDocument) -> bool:
    """PDFs must be rasterized by the caller before OCR."""
    if document.content_type and document.content_type.lower() in config.UNRASTERIZED_CONTENT_TYPES:
        return True
    return Path(document.file_path).suffix.lower() in config.UNRASTERIZED_EXTENSIONS


def parse_document(
    document: UploadedDocument,
    recognizer: Optional[Recognizer] = None,
) -> DocumentResult:
    """
    Recognize and parse one uploaded document.

    Never raises: unsupported formats, OCR failures and empty text all
    produce a result with zero fields and a warning, so one bad document
    cannot abort a multi-document run.

    Args:
        document: The uploaded document.
        recognizer: OCR collaborator, ``recognizer(path) -> text``.
            Defaults to the Tesseract engine.

    Returns:
        DocumentResult with status parsed, empty, skipped or failed.
    """
    if recognizer is None:
        from .engine import recognize_text

        recognizer = recognize_text

    def outcome(status: DocumentStatus, fields=None, warning: Optional[str] = None) -> DocumentResult:
        return DocumentResult(
            doc_id=document.doc_id,
            document_type=document.document_type,
            status=status,
            fields=fields or [],
            warnings=[warning] if warning else [],
        )

    if is_unrasterized(document):
        message = f"Skipped {document.file_path}: PDF documents must be converted to images first"
        logger.warning(message)
        return outcome(DocumentStatus.SKIPPED, warning=message)

    logger.info("Recognizing document %s (type=%s)", document.doc_id, document.document_type.value)
    try:
        raw_text = recognizer(document.file_path)
    except UnsupportedDocumentError as e:
        logger.warning("Skipped %s: %s", document.file_path, e)
        return outcome(DocumentStatus.SKIPPED, warning=f"Unsupported document: {e}")
    except Exception as e:
        logger.error("OCR failed for %s: %s", document.file_path, e)
        return outcome(DocumentStatus.FAILED, warning=f"OCR failed: {e}")

    if not raw_text or not raw_text.strip():
        message = f"No text extracted from {document.file_path}"
        logger.warning(message)
        return outcome(DocumentStatus.EMPTY, warning=message)

    raw = RawDocument(doc_id=document.doc_id, document_type=document.document_type, raw_text=raw_text)
    try:
        fields = parse_raw_document(raw)
    except Exception as e:
        logger.error("Field extraction failed for %s: %s", document.file_path, e)
        return outcome(DocumentStatus.FAILED, warning=f"Extraction failed: {e}")
    return outcome(DocumentStatus.PARSED, fields=fields)
