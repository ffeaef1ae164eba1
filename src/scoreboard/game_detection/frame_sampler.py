"""Stacked Game Over Frame Sampling.

Grabs a single frame from the capture device with ffmpeg and crops the four
game over banner zones into one grayscale image, stacked vertically:

    +-----------+  y=0    Area1  (Zeon player 1)
    +-----------+  y=105  Area2  (Zeon player 2)
    +-----------+  y=210  Area3  (Federation player 1)
    +-----------+  y=315  Area4  (Federation player 2)

The Federation banners are drawn smaller on screen, so their crops are scaled
up to the same 562x105 size before stacking.

Typical usage example:

    sampler = FfmpegFrameSampler(device='OBS Virtual Camera')
    image = decode_stacked_image(sampler.capture_frame())
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from ..config import default_capture_format
from ..factions import REGION_HEIGHT, REGION_WIDTH

logger = logging.getLogger(__name__)

# Crop boxes on the 1920x1080 screen as (x, y, width, height)
SCREEN_CROPS = [
    (195, 307, 562, 105),
    (1158, 307, 562, 105),
    (637, 874, 240, 50),
    (1039, 874, 240, 50),
]


class FrameCaptureError(RuntimeError):
    """Raised when a stacked frame could not be captured or decoded."""


def build_filter_graph(crops: Optional[List[tuple]] = None) -> str:
    """
    Build the ffmpeg filter graph that crops and stacks the banner zones.

    Args:
        crops: Screen crop boxes as (x, y, width, height), top to bottom

    Returns:
        Filter graph string whose output pad is named [out]
    """
    crops = crops or SCREEN_CROPS
    # A filter pad can only be consumed once, so split the scaled frame per crop
    sources = ''.join(f"[scaled{i}]" for i in range(1, len(crops) + 1))
    parts = [f"[0:v]scale=w=1920:h=1080,format=gray,split={len(crops)}{sources}"]
    labels = []

    for i, (x, y, w, h) in enumerate(crops, start=1):
        label = f"crop{i}"
        if (w, h) == (REGION_WIDTH, REGION_HEIGHT):
            parts.append(f"[scaled{i}]crop=w={w}:h={h}:x={x}:y={y}[{label}]")
        else:
            parts.append(f"[scaled{i}]crop=w={w}:h={h}:x={x}:y={y}[{label}a]")
            parts.append(f"[{label}a]scale=w={REGION_WIDTH}:h={REGION_HEIGHT}[{label}]")
        labels.append(f"[{label}]")

    parts.append(f"{''.join(labels)}vstack=inputs={len(labels)}[out]")
    return ";".join(parts)


class FfmpegFrameSampler:
    """Capture stacked banner images from a live video device with ffmpeg."""

    def __init__(self,
                 device: str = 'OBS Virtual Camera',
                 input_format: Optional[str] = None,
                 framerate: int = 60,
                 ffmpeg_path: str = 'ffmpeg',
                 timeout: float = 10.0):
        """
        Initialize the sampler.

        Args:
            device: Capture device name as ffmpeg knows it
            input_format: ffmpeg input format (dshow, avfoundation, v4l2).
                Defaults to the platform's native capture format.
            framerate: Frame rate requested from the device
            ffmpeg_path: Path to the ffmpeg executable
            timeout: Seconds to wait for ffmpeg before giving up on a frame
        """
        self.device = device
        self.input_format = input_format or default_capture_format()
        self.framerate = framerate
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    def _input_args(self) -> List[str]:
        if self.input_format == 'dshow':
            return ['-f', 'dshow', '-pixel_format', 'nv12', '-i', f"video={self.device}"]
        if self.input_format == 'avfoundation':
            return ['-f', 'avfoundation', '-pixel_format', 'uyvy422', '-i', self.device]
        return ['-f', self.input_format, '-i', self.device]

    def build_command(self) -> List[str]:
        """Return the full ffmpeg command line for one stacked frame."""
        return [
            self.ffmpeg_path,
            '-y',
            '-framerate', str(self.framerate),
            *self._input_args(),
            '-filter_complex', build_filter_graph(),
            '-map', '[out]',
            '-vframes', '1',
            '-f', 'image2pipe',
            '-c:v', 'mjpeg',
            '-q:v', '5',
            'pipe:',
        ]

    def capture_frame(self) -> bytes:
        """
        Capture one stacked frame as JPEG bytes.

        Returns:
            Encoded JPEG image

        Raises:
            FrameCaptureError: If ffmpeg cannot be started, fails, times out,
                or produces no output
        """
        cmd = self.build_command()

        try:
            result = subprocess.run(cmd, capture_output=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise FrameCaptureError(f"FFmpeg spawn error: {e}")
        except subprocess.TimeoutExpired:
            raise FrameCaptureError(f"FFmpeg timed out after {self.timeout}s")

        if result.returncode != 0:
            stderr = result.stderr.decode('utf-8', errors='replace').strip()
            raise FrameCaptureError(f"FFmpeg exited with code {result.returncode}: {stderr}")

        if not result.stdout:
            raise FrameCaptureError("Empty buffer received from FFmpeg")

        return result.stdout


class ImageFileSampler:
    """Serve a saved stacked image, for calibration and offline checks."""

    def __init__(self, image_path: str):
        self.image_path = Path(image_path)

    def capture_frame(self) -> bytes:
        try:
            return self.image_path.read_bytes()
        except OSError as e:
            raise FrameCaptureError(f"Could not read image {self.image_path}: {e}")


def decode_stacked_image(data: bytes) -> np.ndarray:
    """
    Decode an encoded stacked image into a grayscale array.

    Args:
        data: JPEG or PNG bytes

    Returns:
        2-D uint8 array

    Raises:
        FrameCaptureError: If the bytes are empty or not a decodable image
    """
    if not data:
        raise FrameCaptureError("Empty image data")

    frame = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_GRAYSCALE)
    if frame is None:
        raise FrameCaptureError("Could not decode stacked image")

    return frame
