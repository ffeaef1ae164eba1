"""
Region Recognizer
OCR of the game over banner zones inside a stacked frame, using Tesseract.
"""

import logging
from typing import Optional

import numpy as np
import pytesseract

from ..factions import GAMEOVER_MARKER, Region

logger = logging.getLogger(__name__)


class RegionRecognitionError(RuntimeError):
    """Raised when OCR of a single region fails."""


class RegionRecognizer:
    """
    Base class for banner zone recognizers.

    Subclasses hold an OCR engine, which is created in open() and released in
    close(). recognize() may only be called between the two.
    """

    def open(self) -> None:
        """Acquire OCR resources. Raises RuntimeError if the engine is unusable."""

    def close(self) -> None:
        """Release OCR resources."""

    @property
    def is_open(self) -> bool:
        return True

    def extract_roi(self, image: np.ndarray, region: Region) -> np.ndarray:
        """
        Crop one banner zone out of the stacked image.

        Args:
            image: Stacked grayscale image
            region: Zone to crop

        Returns:
            Cropped zone as numpy array

        Raises:
            RegionRecognitionError: If the image is too small to contain the zone
        """
        rect = region.rectangle
        if image.shape[0] < rect.top + rect.height:
            raise RegionRecognitionError(
                f"Stacked image height {image.shape[0]} does not contain {region.label}"
            )
        return image[rect.top:rect.top + rect.height, rect.left:rect.left + rect.width]

    def recognize(self, image: np.ndarray, region: Region) -> str:
        raise NotImplementedError


class TesseractRegionRecognizer(RegionRecognizer):
    """Recognize banner text with Tesseract in single-line mode."""

    # Page segmentation mode 7: treat the image as a single text line
    PAGE_SEGMENTATION_MODE = 7

    def __init__(self, whitelist: str = GAMEOVER_MARKER,
                 tesseract_cmd: Optional[str] = None,
                 lang: str = 'eng'):
        """
        Initialize the recognizer.

        Args:
            whitelist: Characters Tesseract may output. Restricting the
                alphabet to the marker's letters keeps noise out of the result.
            tesseract_cmd: Path to the tesseract binary (default: from PATH)
            lang: Tesseract language
        """
        self.whitelist = ''.join(sorted(set(whitelist)))
        self.tesseract_cmd = tesseract_cmd
        self.lang = lang
        self._version = None

    @property
    def config(self) -> str:
        return f"--psm {self.PAGE_SEGMENTATION_MODE} -c tessedit_char_whitelist={self.whitelist}"

    @property
    def is_open(self) -> bool:
        return self._version is not None

    def open(self) -> None:
        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd

        try:
            self._version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as e:
            raise RuntimeError(f"Tesseract is not installed or not on PATH: {e}")

        logger.info(f"Tesseract {self._version} ready (whitelist: {self.whitelist})")

    def close(self) -> None:
        self._version = None

    def recognize(self, image: np.ndarray, region: Region) -> str:
        """
        OCR one banner zone.

        Args:
            image: Stacked grayscale image
            region: Zone to recognize

        Returns:
            Recognized text with surrounding whitespace removed

        Raises:
            RegionRecognitionError: If the recognizer is closed or Tesseract fails
        """
        if not self.is_open:
            raise RegionRecognitionError("Recognizer is not open")

        roi = self.extract_roi(image, region)

        try:
            text = pytesseract.image_to_string(roi, lang=self.lang, config=self.config)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise RegionRecognitionError(f"Tesseract error for {region.label}: {e}")

        return text.strip()
