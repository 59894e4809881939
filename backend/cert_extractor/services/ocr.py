"""OCR service using EasyOCR for scanned certificate pages.

Only used when a PDF page carries no usable text layer. The reader is
loaded lazily once per process and shared; calls are serialized with a
semaphore because inference is CPU-bound.
"""

import os
import re
import threading
import unicodedata
from dataclasses import dataclass
from typing import List, Optional
import logging

import numpy as np

from ..config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class OCRBox:
    """Represents a detected text box with position and confidence."""
    text: str
    confidence: float
    bbox: List[List[int]]  # [[x1,y1], [x2,y2], [x3,y3], [x4,y4]]

    @property
    def top(self) -> int:
        return min(p[1] for p in self.bbox)

    @property
    def bottom(self) -> int:
        return max(p[1] for p in self.bbox)

    @property
    def left(self) -> int:
        return min(p[0] for p in self.bbox)

    @property
    def height(self) -> int:
        return self.bottom - self.top


@dataclass
class OCRResult:
    """Result from OCR processing."""
    boxes: List[OCRBox]
    raw_text: str
    average_confidence: float

    @classmethod
    def empty(cls) -> "OCRResult":
        """Create empty result for failed OCR."""
        return cls(boxes=[], raw_text="", average_confidence=0.0)


def boxes_to_text(boxes: List[OCRBox]) -> str:
    """
    Join boxes in reading order (line by line, then left to right).

    Line height comes from the median box height so rows of small and
    large print both group correctly.
    """
    if not boxes:
        return ""
    line_h = int(np.median([b.height for b in boxes]))
    line_h = max(12, min(line_h, 60))
    sorted_boxes = sorted(boxes, key=lambda b: (b.top // line_h, b.left))
    return " ".join(b.text for b in sorted_boxes)


class OCRService:
    """EasyOCR wrapper service."""

    _instance: Optional["OCRService"] = None
    _reader = None
    _initialized = False
    _lock = threading.Lock()
    _semaphore: Optional[threading.Semaphore] = None

    def __new__(cls):
        """Singleton pattern to reuse OCR engine."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        self.settings = get_settings()
        if self._semaphore is None:
            OCRService._semaphore = threading.Semaphore(self.settings.ocr_max_concurrent)

    def initialize(self) -> bool:
        """
        Initialize OCR engine. Thread-safe.

        Returns:
            True if initialization successful
        """
        with self._lock:
            if self._initialized:
                return True

            try:
                import easyocr

                logger.info("Initializing EasyOCR engine...")
                model_dir = self.settings.ocr_model_dir or os.environ.get("EASYOCR_MODULE_PATH")
                kwargs = {"gpu": False, "verbose": False}
                if model_dir:
                    kwargs["model_storage_directory"] = model_dir

                OCRService._reader = easyocr.Reader([self.settings.ocr_lang], **kwargs)
                OCRService._initialized = True
                logger.info("EasyOCR initialized successfully")
                return True

            except Exception as e:
                logger.error(f"Failed to initialize EasyOCR: {e}")
                return False

    @property
    def is_ready(self) -> bool:
        """Check if OCR engine is ready."""
        return self._initialized and self._reader is not None

    def read_text(self, image: np.ndarray) -> OCRResult:
        """
        Run OCR on a preprocessed page image.

        Args:
            image: Page image as numpy array (BGR or grayscale)

        Returns:
            OCRResult with boxes above the confidence threshold
        """
        if not self.is_ready and not self.initialize():
            logger.error("OCR engine not initialized")
            return OCRResult.empty()

        with self._semaphore:
            results = self._reader.readtext(image, decoder="greedy", batch_size=1, paragraph=False)

        boxes = []
        for bbox_points, text, confidence in results:
            normalized_text = self._normalize_text(text)
            if not normalized_text or confidence < self.settings.ocr_confidence_threshold:
                continue
            boxes.append(OCRBox(
                text=normalized_text,
                confidence=float(confidence),
                bbox=[[int(p[0]), int(p[1])] for p in bbox_points],
            ))

        if not boxes:
            logger.warning("OCR returned no results")
            return OCRResult.empty()

        avg_confidence = sum(b.confidence for b in boxes) / len(boxes)
        return OCRResult(boxes=boxes, raw_text=boxes_to_text(boxes), average_confidence=avg_confidence)

    def _normalize_text(self, text: str) -> str:
        """Unicode NFKC normalization and whitespace collapse."""
        normalized = unicodedata.normalize("NFKC", text)
        return re.sub(r"\s+", " ", normalized).strip()
