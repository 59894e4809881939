"""Document validation and page-text loading.

Only the first page of a certificate is read. A PDF text layer can come
out differently depending on how it is read, so several strategies are
tried and the longest text wins. Scanned pages without a text layer fall
back to OCR when it is enabled.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging

import fitz  # PyMuPDF

from .ocr import OCRService
from .preprocessing import PagePreprocessor
from ..config import get_settings
from ..errors import DocumentValidationError, NoTextExtractedError

logger = logging.getLogger(__name__)

# PyMuPDF text-layer strategies, in preference order for equal lengths
TEXT_STRATEGIES = ("text", "sorted", "blocks")


@dataclass
class DocumentText:
    """Page text loaded from a document."""
    text: str
    from_ocr: bool = False
    strategy: str = ""


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


class DocumentTextLoader:
    """Validates uploaded documents and loads their first-page text."""

    def __init__(
        self,
        ocr_service: Optional[OCRService] = None,
        preprocessor: Optional[PagePreprocessor] = None,
    ):
        self.settings = get_settings()
        self.ocr_service = ocr_service
        self.preprocessor = preprocessor

    def validate_document(self, data: bytes, filename: str) -> Tuple[bool, str]:
        """
        Validate a document before processing.

        Returns:
            Tuple of (is_valid, error_message)
        """
        ext = file_extension(filename)
        if ext not in self.settings.allowed_extensions:
            allowed = " or ".join(sorted(e.upper() for e in self.settings.allowed_extensions))
            return False, f"must be {allowed}"

        if not data:
            return False, "file is empty"

        size_mb = len(data) / (1024 * 1024)
        if size_mb > self.settings.max_upload_size_mb:
            return False, f"exceeds {self.settings.max_upload_size_mb}MB upload limit"

        return True, ""

    def load_text(self, data: bytes, filename: str) -> DocumentText:
        """
        Load the first-page text of a document.

        Args:
            data: Raw file bytes
            filename: Original file name (selects PDF or plain-text handling)

        Returns:
            DocumentText with the chosen text

        Raises:
            NoTextExtractedError: If no text could be obtained
            DocumentValidationError: If the PDF cannot be opened
        """
        if file_extension(filename) == "txt":
            text = data.decode("utf-8", errors="replace")
            if not text.strip():
                raise NoTextExtractedError(f"No text could be extracted from {filename}")
            return DocumentText(text=text, strategy="plain")

        return self._load_pdf(data, filename)

    def _load_pdf(self, data: bytes, filename: str) -> DocumentText:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                if doc.page_count == 0:
                    raise NoTextExtractedError(f"No pages found in {filename}")

                page = doc[0]
                text, strategy = self._best_text_layer(page)
                logger.info(f"{filename}: {len(text.strip())} chars via '{strategy or 'none'}'")

                if len(text.strip()) < self.settings.min_text_length and self.settings.ocr_enabled:
                    ocr_text = self._ocr_page(page)
                    if len(ocr_text.strip()) > len(text.strip()):
                        logger.info(f"{filename}: using OCR text ({len(ocr_text)} chars)")
                        return DocumentText(text=ocr_text, from_ocr=True, strategy="ocr")
        except fitz.FileDataError as e:
            raise DocumentValidationError(filename, f"unreadable PDF: {e}") from e

        if not text.strip():
            raise NoTextExtractedError(f"No text could be extracted from {filename}")
        return DocumentText(text=text, strategy=strategy)

    def _best_text_layer(self, page: "fitz.Page") -> Tuple[str, str]:
        """Run every text strategy and keep the longest result."""
        best, best_strategy = "", ""
        for strategy in TEXT_STRATEGIES:
            try:
                text = self._extract_with(page, strategy)
            except Exception as e:
                logger.debug(f"Text strategy '{strategy}' failed: {e}")
                continue
            if len(text.strip()) > len(best.strip()):
                best, best_strategy = text, strategy
        return best, best_strategy

    def _extract_with(self, page: "fitz.Page", strategy: str) -> str:
        if strategy == "text":
            return page.get_text("text")
        if strategy == "sorted":
            return page.get_text("text", sort=True)
        if strategy == "blocks":
            # (x0, y0, x1, y1, text, block_no, block_type); type 0 is text
            blocks = page.get_text("blocks", sort=True)
            return "\n".join(block[4] for block in blocks if block[6] == 0)
        raise ValueError(f"Unknown text strategy: {strategy}")

    def _ocr_page(self, page: "fitz.Page") -> str:
        """Render the page and read it with OCR."""
        ocr_service = self.ocr_service or OCRService()
        if not ocr_service.is_ready and not ocr_service.initialize():
            logger.warning("OCR fallback requested but OCR engine is unavailable")
            return ""

        preprocessor = self.preprocessor or PagePreprocessor()
        zoom = self.settings.ocr_render_dpi / 72
        pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
        image = preprocessor.load_png(pixmap.tobytes("png"))
        prepared, _ = preprocessor.preprocess(image)
        return ocr_service.read_text(prepared).raw_text
