"""Page image preparation for OCR."""

import io
from typing import Tuple
import logging

import cv2
import numpy as np
from PIL import Image

from ..config import get_settings

logger = logging.getLogger(__name__)


class PagePreprocessor:
    """Turns a rendered certificate page into an OCR-friendly image."""

    def __init__(self):
        self.settings = get_settings()

    def load_png(self, png_bytes: bytes) -> np.ndarray:
        """Load a rendered page (PNG bytes) as a BGR array."""
        pil_image = Image.open(io.BytesIO(png_bytes))
        if pil_image.mode != "RGB":
            pil_image = pil_image.convert("RGB")
        return cv2.cvtColor(np.array(pil_image), cv2.COLOR_RGB2BGR)

    def preprocess(self, image: np.ndarray) -> Tuple[np.ndarray, list]:
        """
        Prepare a page image for OCR.

        Pipeline: grayscale, upscale small pages, denoise, adaptive threshold.

        Args:
            image: Page image as BGR or grayscale array

        Returns:
            Tuple of (BGR image for EasyOCR, list of applied steps)
        """
        steps = []

        if len(image.shape) == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
            steps.append("grayscale")
        else:
            gray = image

        gray, upscaled = self._upscale_if_small(gray)
        if upscaled:
            steps.append("upscale")

        gray = cv2.fastNlMeansDenoising(gray, None, h=10, templateWindowSize=7, searchWindowSize=21)
        steps.append("denoise")

        binary = self._adaptive_threshold(gray)
        steps.append("adaptive_threshold")

        logger.debug(f"Page preprocessing steps: {steps}")
        return cv2.cvtColor(binary, cv2.COLOR_GRAY2BGR), steps

    def _upscale_if_small(self, image: np.ndarray) -> Tuple[np.ndarray, bool]:
        height, width = image.shape[:2]
        min_dim = self.settings.min_page_dimension
        if max(width, height) >= min_dim:
            return image, False

        scale = min_dim / max(width, height)
        resized = cv2.resize(image, (int(width * scale), int(height * scale)), interpolation=cv2.INTER_CUBIC)
        return resized, True

    def _adaptive_threshold(self, image: np.ndarray) -> np.ndarray:
        """Adaptive threshold handles uneven scan lighting better than a global one."""
        return cv2.adaptiveThreshold(
            image,
            255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY,
            blockSize=21,
            C=10,
        )
