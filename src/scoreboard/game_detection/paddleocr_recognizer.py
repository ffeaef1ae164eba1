"""PaddleOCR Region Recognizer.

Alternative to the Tesseract recognizer for stylized banner fonts. PaddleOCR
does not support a character whitelist, so recognized text is filtered down to
the marker alphabet afterwards, which keeps results comparable with Tesseract.

Typical usage example:

    recognizer = PaddleOCRRegionRecognizer(use_gpu=True)
    recognizer.open()
    text = recognizer.recognize(stacked_image, Region.AREA1)
    recognizer.close()
"""

import logging
import sys

import numpy as np

try:
    from paddleocr import PaddleOCR
except ImportError:
    print("Error: PaddleOCR not installed", file=sys.stderr)
    print("\nInstall with:", file=sys.stderr)
    print("  pip install paddlepaddle paddleocr", file=sys.stderr)
    raise

from ..factions import GAMEOVER_MARKER, Region
from .region_recognizer import RegionRecognitionError, RegionRecognizer

logger = logging.getLogger(__name__)


class PaddleOCRRegionRecognizer(RegionRecognizer):
    """Recognize banner text with PaddleOCR.

    Attributes:
        ocr: PaddleOCR instance, created by open().
        confidence_threshold: Minimum confidence for a text line to count.
    """

    def __init__(self,
                 whitelist: str = GAMEOVER_MARKER,
                 lang: str = 'en',
                 use_gpu: bool = False,
                 confidence_threshold: float = 0.5,
                 det_db_thresh: float = 0.3,
                 det_db_box_thresh: float = 0.5):
        """Initialize the recognizer.

        Args:
            whitelist: Characters kept from the recognized text.
            lang: Language code for OCR.
            use_gpu: Enable GPU acceleration (requires paddlepaddle-gpu).
            confidence_threshold: Minimum confidence for a text line (0.0-1.0).
            det_db_thresh: Text detection threshold (0.0-1.0).
            det_db_box_thresh: Bounding box threshold (0.0-1.0).
        """
        self.whitelist = set(whitelist)
        self.lang = lang
        self.use_gpu = use_gpu
        self.confidence_threshold = confidence_threshold
        self.det_db_thresh = det_db_thresh
        self.det_db_box_thresh = det_db_box_thresh
        self.ocr = None

    @property
    def is_open(self) -> bool:
        return self.ocr is not None

    def open(self) -> None:
        logger.info(f"Initializing PaddleOCR (lang={self.lang}, gpu={self.use_gpu})...")
        try:
            self.ocr = PaddleOCR(
                lang=self.lang,
                use_gpu=self.use_gpu,
                use_angle_cls=False,
                show_log=False,
                det_db_thresh=self.det_db_thresh,
                det_db_box_thresh=self.det_db_box_thresh
            )
        except Exception as e:
            raise RuntimeError(f"PaddleOCR failed to initialize: {e}")
        logger.info("PaddleOCR initialized")

    def close(self) -> None:
        self.ocr = None

    def recognize(self, image: np.ndarray, region: Region) -> str:
        """OCR one banner zone.

        Args:
            image: Stacked grayscale image.
            region: Zone to recognize.

        Returns:
            Text of all confident lines joined left to right, reduced to the
            whitelist alphabet. Returns "" if nothing was detected.

        Raises:
            RegionRecognitionError: If the recognizer is closed or PaddleOCR fails.
        """
        if not self.is_open:
            raise RegionRecognitionError("Recognizer is not open")

        roi = self.extract_roi(image, region)
        if roi.ndim == 2:
            # PaddleOCR expects a 3-channel image
            roi = np.stack([roi, roi, roi], axis=-1)

        try:
            result = self.ocr.ocr(roi, cls=False)
        except Exception as e:
            raise RegionRecognitionError(f"PaddleOCR error for {region.label}: {e}")

        if not result or not result[0]:
            return ""

        lines = []
        for line in result[0]:
            if line:
                # line format: [[[x1,y1], [x2,y2], [x3,y3], [x4,y4]], (text, confidence)]
                bbox = line[0]
                text, confidence = line[1]
                if confidence >= self.confidence_threshold:
                    lines.append((bbox[0][0], text))

        lines.sort(key=lambda item: item[0])
        combined = ''.join(text for _, text in lines).upper()
        return ''.join(ch for ch in combined if ch in self.whitelist)
