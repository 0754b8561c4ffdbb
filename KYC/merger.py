"""
merger.py

Cross-document consolidation of extracted fields.

All documents' field lists are folded, in input order, into a single
ConsolidatedRecord. A later field replaces the current one for its key
only if its confidence strictly outranks it (high > medium > low), so
equal-confidence conflicts keep the value from the earlier document.
Canonical keys nobody found get an empty "Not found" placeholder.
"""

import logging
from typing import Dict, Iterable, Optional, Sequence

from . import config
from .schemas import CANONICAL_KEYS, Confidence, ConsolidatedRecord, ExtractedField, FieldKey

logger = logging.getLogger(__name__)


def outranks(candidate: Confidence, current: Confidence) -> bool:
    """True when ``candidate`` is strictly more reliable than ``current``."""
    return Confidence(candidate).rank > Confidence(current).rank


def placeholder(key: FieldKey) -> ExtractedField:
    return ExtractedField(
        key=key,
        value="",
        confidence=Confidence.LOW,
        source=config.NOT_FOUND_SOURCE,
    )


def merge_fields(
    field_lists: Iterable[Iterable[ExtractedField]],
    canonical_keys: Optional[Sequence[FieldKey]] = None,
) -> ConsolidatedRecord:
    """
    Fold per-document field lists into one record.

    Args:
        field_lists: One list of fields per document, in document order.
            Documents that failed OCR are simply absent.
        canonical_keys: Keys the record must cover. Defaults to every FieldKey.

    Returns:
        ConsolidatedRecord with exactly one entry per canonical key, in
        canonical order, followed by any extra keys in first-seen order.
    """
    if canonical_keys is None:
        canonical_keys = CANONICAL_KEYS

    best: Dict[FieldKey, ExtractedField] = {}
    for fields in field_lists:
        for field in fields:
            current = best.get(field.key)
            if current is None:
                best[field.key] = field
            elif outranks(field.confidence, current.confidence):
                logger.debug(
                    "%s: %s (%s) replaces %s (%s)",
                    field.key.value,
                    field.source,
                    field.confidence.value,
                    current.source,
                    current.confidence.value,
                )
                best[field.key] = field

    entries = [best.get(key) or placeholder(key) for key in canonical_keys]
    entries.extend(field for key, field in best.items() if key not in canonical_keys)

    found = sum(1 for key in canonical_keys if key in best)
    logger.info("Consolidated record: %d/%d field(s) found", found, len(canonical_keys))
    return ConsolidatedRecord(entries=tuple(entries))
