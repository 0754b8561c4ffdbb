"""
pipeline.py

Main orchestrator for the KYC extraction package.

Coordinates the full run: OCR + parsing per document (concurrently),
then a strictly sequential merge once every document has finished.
ExtractionRunner adds generation tokens so that a run superseded by a
newer document set never publishes its late results.
"""

import hashlib
import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence, Tuple

from . import config
from .document_parser import Recognizer, parse_document
from .merger import merge_fields
from .schemas import ConsolidatedRecord, DocumentResult, DocumentStatus, UploadedDocument

logger = logging.getLogger(__name__)


def parse_documents(
    documents: Sequence[UploadedDocument],
    recognizer: Optional[Recognizer] = None,
    max_workers: Optional[int] = None,
    is_stale=None,
) -> List[DocumentResult]:
    """
    Parse documents, concurrently when there is more than one.

    Args:
        documents: Uploaded documents in submission order.
        recognizer: OCR collaborator passed to parse_document.
        max_workers: Number of concurrent workers. Defaults to config.BATCH_WORKERS.
        is_stale: Optional callable; once it returns True, documents not yet
            started are cancelled.

    Returns:
        One DocumentResult per document that ran, in input order.
    """
    if max_workers is None:
        max_workers = config.BATCH_WORKERS

    # For single file or small batches, process sequentially
    if len(documents) <= 1 or max_workers <= 1:
        results = []
        for document in documents:
            if is_stale is not None and is_stale():
                break
            results.append(parse_document(document, recognizer))
        return results

    by_index: Dict[int, DocumentResult] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(parse_document, document, recognizer): i
            for i, document in enumerate(documents)
        }

        for future in as_completed(future_to_index):
            i = future_to_index[future]
            if future.cancelled():
                continue
            try:
                by_index[i] = future.result()
            except Exception as e:
                document = documents[i]
                logger.error("Failed to process %s: %s", document.file_path, e)
                by_index[i] = DocumentResult(
                    doc_id=document.doc_id,
                    document_type=document.document_type,
                    status=DocumentStatus.FAILED,
                    warnings=[f"Processing failed: {e}"],
                )
            if is_stale is not None and is_stale():
                for pending in future_to_index:
                    pending.cancel()

    return [by_index[i] for i in sorted(by_index)]


def extract_documents(
    documents: Sequence[UploadedDocument],
    recognizer: Optional[Recognizer] = None,
    max_workers: Optional[int] = None,
) -> ConsolidatedRecord:
    """
    Extract and consolidate personal data from a set of documents.

    Args:
        documents: Uploaded documents; their order decides equal-confidence ties.
        recognizer: OCR collaborator, ``recognizer(path) -> text``.
        max_workers: Number of concurrent workers.

    Returns:
        ConsolidatedRecord covering every canonical key, even when no
        document yielded any text.
    """
    logger.info("Processing %d document(s)", len(documents))
    results = parse_documents(documents, recognizer, max_workers)
    return consolidate(results)


def consolidate(results: Sequence[DocumentResult]) -> ConsolidatedRecord:
    """Merge parsed documents in order; failed or skipped ones contribute nothing."""
    for result in results:
        if result.status != DocumentStatus.PARSED:
            logger.info("Document %s contributes no fields (%s)", result.doc_id, result.status.value)
    return merge_fields(result.fields for result in results if result.status == DocumentStatus.PARSED)


def generation_token(documents: Sequence[UploadedDocument], serial: int) -> str:
    """Token identifying one submission of a document set."""
    digest = hashlib.sha256()
    for document in documents:
        digest.update(f"{document.doc_id}\x1f{document.document_type.value}\x1e".encode("utf-8"))
    return f"{serial}:{digest.hexdigest()[:16]}"


class ExtractionRunner:
    """
    Runs extractions keyed by generation token.

    Each call to run() supersedes the previous submission. A run that
    finishes after it was superseded returns None instead of a record,
    and its not-yet-started documents are cancelled.
    """

    def __init__(self, recognizer: Optional[Recognizer] = None, max_workers: Optional[int] = None):
        self.recognizer = recognizer
        self.max_workers = max_workers
        self._lock = threading.Lock()
        self._serials = itertools.count(1)
        self._current: Optional[str] = None
        self._latest: Optional[Tuple[str, ConsolidatedRecord]] = None

    @property
    def current_token(self) -> Optional[str]:
        with self._lock:
            return self._current

    @property
    def latest(self) -> Optional[ConsolidatedRecord]:
        """Record of the most recent run that was not superseded."""
        with self._lock:
            return self._latest[1] if self._latest else None

    def submit(self, documents: Sequence[UploadedDocument]) -> str:
        """Register a new document set and return its generation token."""
        with self._lock:
            token = generation_token(documents, next(self._serials))
            if self._current is not None:
                logger.info("Generation %s superseded by %s", self._current, token)
            self._current = token
            return token

    def is_current(self, token: str) -> bool:
        with self._lock:
            return token == self._current

    def run(self, documents: Sequence[UploadedDocument]) -> Optional[ConsolidatedRecord]:
        """
        Submit a document set and extract it.

        Returns:
            The consolidated record, or None when a newer submission
            arrived before this run finished.
        """
        token = self.submit(documents)
        results = parse_documents(
            documents,
            self.recognizer,
            self.max_workers,
            is_stale=lambda: not self.is_current(token),
        )

        with self._lock:
            if token != self._current:
                logger.info("Discarding stale results of generation %s", token)
                return None
            record = consolidate(results)
            self._latest = (token, record)
            return record
