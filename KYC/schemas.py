"""
schemas.py

Pydantic models shared by the extraction pipeline.

Documents flow in as UploadedDocument, become RawDocument once the OCR
collaborator has produced text, yield a list of ExtractedField per
document, and are finally folded into one ConsolidatedRecord.
"""

from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class DocumentType(str, Enum):
    AADHAAR = "aadhaar"
    PAN = "pan"
    VOTER_ID = "voter_id"
    DRIVING_LICENSE = "driving_license"
    PASSPORT = "passport"
    OTHER = "other"


class FieldKey(str, Enum):
    """Canonical personal-data keys, in the order records are rendered."""

    FULL_NAME = "fullName"
    DATE_OF_BIRTH = "dateOfBirth"
    GENDER = "gender"
    ADDRESS = "address"
    PINCODE = "pincode"
    STATE = "state"
    AADHAAR_NUMBER = "aadhaarNumber"
    PAN_NUMBER = "panNumber"
    FATHER_NAME = "fatherName"
    MOTHER_NAME = "motherName"
    MOBILE_NUMBER = "mobileNumber"


CANONICAL_KEYS: Tuple[FieldKey, ...] = tuple(FieldKey)


class Confidence(str, Enum):
    """
    Coarse reliability tier of an extracted value.

    Only used to break ties when the same key is found in several
    documents; it is not a probability.
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {
    Confidence.HIGH: 3,
    Confidence.MEDIUM: 2,
    Confidence.LOW: 1,
}


class DocumentStatus(str, Enum):
    PARSED = "parsed"
    EMPTY = "empty"
    SKIPPED = "skipped"
    FAILED = "failed"


class UploadedDocument(BaseModel):
    """A document submitted for extraction, before OCR."""

    model_config = ConfigDict(frozen=True)

    doc_id: str
    document_type: DocumentType = DocumentType.OTHER
    file_path: str
    content_type: Optional[str] = None


class RawDocument(BaseModel):
    """OCR output for one document."""

    model_config = ConfigDict(frozen=True)

    doc_id: str
    document_type: DocumentType = DocumentType.OTHER
    raw_text: str = ""


class ExtractedField(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: FieldKey
    value: str = ""
    confidence: Confidence = Confidence.LOW
    source: str = ""


class DocumentResult(BaseModel):
    """Per-document outcome of the parser."""

    doc_id: str
    document_type: DocumentType
    status: DocumentStatus
    fields: List[ExtractedField] = []
    warnings: List[str] = []


class ConsolidatedRecord(BaseModel):
    """
    Final merged mapping from canonical key to best-known field.

    Holds exactly one field per canonical key, in canonical order.
    The record is immutable; downstream editing works on copies
    produced by as_dict() or as_list().
    """

    model_config = ConfigDict(frozen=True)

    entries: Tuple[ExtractedField, ...] = ()

    def __getitem__(self, key) -> ExtractedField:
        try:
            key = FieldKey(key)
        except ValueError:
            raise KeyError(key) from None
        for field in self.entries:
            if field.key == key:
                return field
        raise KeyError(key.value)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key) -> bool:
        try:
            self[key]
        except KeyError:
            return False
        return True

    def get(self, key, default: Optional[ExtractedField] = None) -> Optional[ExtractedField]:
        try:
            return self[key]
        except KeyError:
            return default

    def keys(self) -> List[FieldKey]:
        return [field.key for field in self.entries]

    def items(self) -> Iterator[Tuple[FieldKey, ExtractedField]]:
        return ((field.key, field) for field in self.entries)

    def as_list(self) -> List[ExtractedField]:
        return list(self.entries)

    def as_dict(self) -> Dict[str, str]:
        """Plain key -> value mapping for form prefilling."""
        return {field.key.value: field.value for field in self.entries}
