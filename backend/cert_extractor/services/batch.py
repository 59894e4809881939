"""Batch processing of certificate documents.

Every document is handled on its own: a failure is recorded as an error
string for that file and the batch carries on with the next one.
"""

import time
import logging
import multiprocessing
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .extraction import CertificateExtractor
from .export import JsonExporter
from .ingestion import DocumentTextLoader
from .records import CertificateRecord
from ..config import get_settings
from ..errors import CertificateExtractionError, DocumentValidationError

logger = logging.getLogger(__name__)

DocumentInput = Tuple[str, bytes]


@dataclass(frozen=True)
class ExtractionBatchResult:
    """Outcome of one batch request, immutable once returned."""
    certificates: Tuple[CertificateRecord, ...] = ()
    errors: Tuple[str, ...] = ()
    processed_files: int = 0
    saved_file: Optional[str] = None

    @property
    def has_results(self) -> bool:
        return len(self.certificates) > 0


def _process_single_document(
    args: Tuple[str, bytes],
    extractor: Optional[CertificateExtractor] = None,
    loader: Optional[DocumentTextLoader] = None,
) -> Dict[str, Any]:
    """
    Process one document. Runs in-process or in a worker process.

    A worker process builds its own extractor and loader.
    """
    filename, data = args
    start_time = time.time()
    extractor = extractor or CertificateExtractor()
    loader = loader or DocumentTextLoader()

    is_valid, reason = loader.validate_document(data, filename)
    if not is_valid:
        logger.warning(f"Rejected {filename}: {reason}")
        return {
            "filename": filename,
            "processed": False,
            "certificate": None,
            "error": str(DocumentValidationError(filename, reason)),
        }

    try:
        document = loader.load_text(data, filename)
        certificate = extractor.extract(document.text, from_ocr=document.from_ocr)
    except DocumentValidationError as e:
        logger.warning(f"Rejected {filename}: {e.reason}")
        return {"filename": filename, "processed": False, "certificate": None, "error": str(e)}
    except CertificateExtractionError as e:
        logger.warning(f"Error processing {filename}: {e}")
        return {
            "filename": filename,
            "processed": True,
            "certificate": None,
            "error": f"Error processing {filename}: {e}",
        }
    except Exception as e:
        logger.exception(f"Error processing {filename}: {e}")
        return {
            "filename": filename,
            "processed": True,
            "certificate": None,
            "error": f"Error processing {filename}: {e}",
        }

    processing_time = int((time.time() - start_time) * 1000)
    logger.info(f"Processed {filename} in {processing_time}ms")
    return {"filename": filename, "processed": True, "certificate": certificate, "error": None}


class ExtractionOrchestrator:
    """Runs a batch of documents through loading and extraction."""

    def __init__(
        self,
        extractor: Optional[CertificateExtractor] = None,
        loader: Optional[DocumentTextLoader] = None,
        exporter: Optional[JsonExporter] = None,
    ):
        self.settings = get_settings()
        self.extractor = extractor or CertificateExtractor()
        self.loader = loader or DocumentTextLoader()
        self.exporter = exporter

    def process_batch(
        self,
        documents: Sequence[DocumentInput],
        max_workers: Optional[int] = None,
    ) -> ExtractionBatchResult:
        """
        Process documents and collect their certificates and errors.

        Args:
            documents: (filename, bytes) pairs, in the order results are wanted
            max_workers: Parallel worker processes (defaults to config)

        Returns:
            ExtractionBatchResult in input order
        """
        if max_workers is None:
            max_workers = min(self.settings.max_workers, multiprocessing.cpu_count(), max(len(documents), 1))

        if len(documents) <= 1 or max_workers <= 1:
            outcomes = [
                _process_single_document(doc, self.extractor, self.loader)
                for doc in documents
            ]
        else:
            outcomes = self._process_parallel(documents, max_workers)

        certificates: List[CertificateRecord] = []
        errors: List[str] = []
        processed_files = 0
        for outcome in outcomes:
            if outcome["processed"]:
                processed_files += 1
            if outcome["certificate"] is not None:
                certificates.append(outcome["certificate"])
            if outcome["error"]:
                errors.append(outcome["error"])

        saved_file = self._save(certificates, errors)
        logger.info(
            f"Batch done: {processed_files}/{len(documents)} processed, "
            f"{len(certificates)} certificate(s), {len(errors)} error(s)"
        )
        return ExtractionBatchResult(
            certificates=tuple(certificates),
            errors=tuple(errors),
            processed_files=processed_files,
            saved_file=saved_file,
        )

    def process_texts(
        self,
        texts: Sequence[Tuple[str, str]],
        from_ocr: bool = False,
    ) -> ExtractionBatchResult:
        """Process already-extracted page texts, one (name, text) pair per document."""
        certificates: List[CertificateRecord] = []
        errors: List[str] = []
        for name, text in texts:
            try:
                certificate = self.extractor.extract(text, from_ocr=from_ocr)
            except CertificateExtractionError as e:
                logger.warning(f"Error processing {name}: {e}")
                errors.append(f"Error processing {name}: {e}")
            except Exception as e:
                logger.exception(f"Error processing {name}: {e}")
                errors.append(f"Error processing {name}: {e}")
            else:
                certificates.append(certificate)

        saved_file = self._save(certificates, errors)
        return ExtractionBatchResult(
            certificates=tuple(certificates),
            errors=tuple(errors),
            processed_files=len(texts),
            saved_file=saved_file,
        )

    def _process_parallel(self, documents: Sequence[DocumentInput], max_workers: int) -> List[Dict[str, Any]]:
        # ProcessPoolExecutor to bypass the GIL for CPU-bound OCR
        outcomes: List[Optional[Dict[str, Any]]] = [None] * len(documents)
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(_process_single_document, doc): index
                for index, doc in enumerate(documents)
            }
            for future in as_completed(futures):
                index = futures[future]
                filename = documents[index][0]
                try:
                    outcomes[index] = future.result()
                except Exception as e:
                    logger.exception(f"Worker error for {filename}: {e}")
                    outcomes[index] = {
                        "filename": filename,
                        "processed": True,
                        "certificate": None,
                        "error": f"Error processing {filename}: {e}",
                    }
        return outcomes

    def _save(self, certificates: List[CertificateRecord], errors: List[str]) -> Optional[str]:
        """Export certificates when an exporter is configured; failures are appended to errors."""
        if self.exporter is None or not certificates:
            return None
        try:
            return self.exporter.save(certificates)
        except CertificateExtractionError as e:
            logger.warning(f"Error saving JSON file: {e}")
            errors.append(f"Error saving JSON file: {e}")
            return None
