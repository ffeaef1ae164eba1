"""
Game Detection Module

Provides live detection of game over banners:
1. Stacked frame capture from the broadcast feed with ffmpeg
2. Banner zone OCR with Tesseract (PaddleOCR in paddleocr_recognizer)
3. Periodic polling that forwards detections to the outcome aggregator
"""

from .frame_sampler import FfmpegFrameSampler, ImageFileSampler, FrameCaptureError, decode_stacked_image
from .region_recognizer import RegionRecognizer, TesseractRegionRecognizer, RegionRecognitionError
from .detection_poller import DetectionPoller

__all__ = [
    'FfmpegFrameSampler',
    'ImageFileSampler',
    'FrameCaptureError',
    'decode_stacked_image',
    'RegionRecognizer',
    'TesseractRegionRecognizer',
    'RegionRecognitionError',
    'DetectionPoller'
]
