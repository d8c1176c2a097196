"""
ASCII Video Frame Extraction
Samples a video at a fixed rate and turns the samples into ASCII frames.

Frame i is the picture shown at t = i / fps, for i in 0 .. floor(duration * fps) - 1.
At most MAX_FRAMES frames are extracted; larger requests are refused before
the video is touched.

Seeks are strictly sequential: seek i+1 is not issued until frame i has been
captured. A video source has a single current frame, so overlapping seeks
would read stale pictures.

Video sources (anything with these members works, see VideoSource):
  duration, width, height   - seconds / native pixel size
  await seek(t)             - resolves once position t is decoded
  snapshot()                - RGBA Pillow image of the current frame

Dependencies:
  pip install Pillow opencv-python
"""

import asyncio
import contextlib
import logging
import math
import threading
from typing import Protocol

from PIL import Image

from ascii_art import ASCII_CHARS, frames_to_ascii, image_to_ascii_sync
from ascii_errors import (
    CapacityExceededError,
    ConversionCancelled,
    DecodeError,
    InvalidArgumentError,
    SeekError,
)

# Try to import OpenCV for video support
try:
    import cv2
    HAS_CV2 = True
except ImportError:
    HAS_CV2 = False

logger = logging.getLogger(__name__)

MAX_FRAMES = 200

# Seconds a single seek may take before the extraction is abandoned
DEFAULT_SEEK_TIMEOUT = 10.0

# Sampling rates offered by the frame-rate presets
FPS_OPTIONS = (1, 2, 5, 10)


class VideoSource(Protocol):
    @property
    def duration(self) -> float: ...

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    async def seek(self, timestamp: float) -> None: ...

    def snapshot(self) -> Image.Image: ...


class OpenCVVideo:
    """VideoSource backed by cv2.VideoCapture.

    Positioning and decoding block, so they run in a worker thread; the seek
    awaitable resolves once the frame at the new position has been read.
    A seek abandoned on timeout keeps its worker thread; the capture lock
    makes the next seek and release() wait for that read to finish.
    """

    def __init__(self, capture):
        self._capture = capture
        self._lock = threading.Lock()
        self._frame = None
        source_fps = capture.get(cv2.CAP_PROP_FPS)
        if not source_fps or source_fps <= 0:
            raise DecodeError("Video reports no frame rate")
        total_frames = int(capture.get(cv2.CAP_PROP_FRAME_COUNT))
        self.source_fps = source_fps
        self.total_frames = total_frames
        self._duration = total_frames / source_fps
        self._width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))

    @property
    def duration(self):
        return self._duration

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self._height

    def _read_at(self, timestamp):
        with self._lock:
            self._capture.set(cv2.CAP_PROP_POS_MSEC, timestamp * 1000)
            ret, frame = self._capture.read()
        if not ret:
            raise SeekError(timestamp, "no frame decoded at this position")
        return frame

    async def seek(self, timestamp):
        self._frame = await asyncio.to_thread(self._read_at, timestamp)

    def snapshot(self):
        if self._frame is None:
            raise SeekError(0.0, "snapshot requested before any seek completed")
        # Convert BGR (OpenCV) to RGB, then to PIL Image
        rgb = cv2.cvtColor(self._frame, cv2.COLOR_BGR2RGB)
        return Image.fromarray(rgb).convert("RGBA")

    def release(self):
        with self._lock:
            self._capture.release()


@contextlib.asynccontextmanager
async def open_video(video_path):
    """Open a video file with OpenCV, releasing the capture on exit."""
    if not HAS_CV2:
        raise DecodeError("opencv-python is required for video input")

    capture = await asyncio.to_thread(cv2.VideoCapture, str(video_path))
    if not capture.isOpened():
        capture.release()
        raise DecodeError(f"Could not open video: {video_path}")

    try:
        video = OpenCVVideo(capture)
    except DecodeError:
        capture.release()
        raise

    logger.debug(
        "Opened %s: %dx%d, %.2fs at %.1f fps",
        video_path, video.width, video.height, video.duration, video.source_fps,
    )
    try:
        yield video
    finally:
        await asyncio.to_thread(video.release)


def frame_count_for(duration, fps):
    if fps <= 0:
        raise InvalidArgumentError(f"fps must be positive, got {fps}")
    return math.floor(duration * fps)


async def capture_frame(video, timestamp=0.0, timeout=DEFAULT_SEEK_TIMEOUT):
    """Seek to timestamp and return a fresh image of the frame shown there.

    timeout bounds the seek in seconds; None waits indefinitely.
    """
    try:
        if timeout is None:
            await video.seek(timestamp)
        else:
            await asyncio.wait_for(video.seek(timestamp), timeout)
    except asyncio.TimeoutError as e:
        raise SeekError(timestamp, f"timed out after {timeout}s") from e
    except SeekError:
        raise
    except Exception as e:
        raise SeekError(timestamp, str(e)) from e
    return video.snapshot()


async def extract_video_frames(video, fps, seek_timeout=DEFAULT_SEEK_TIMEOUT, cancel=None):
    """Capture one frame every 1 / fps seconds across the whole video.

    Raises CapacityExceededError (before seeking) when more than MAX_FRAMES
    frames would be needed. cancel is an optional asyncio.Event checked
    between seeks.
    """
    count = frame_count_for(video.duration, fps)
    if count > MAX_FRAMES:
        logger.info("Rejected %d frames (maximum %d)", count, MAX_FRAMES)
        raise CapacityExceededError(count, MAX_FRAMES)

    frames = []
    for i in range(count):
        if cancel is not None and cancel.is_set():
            raise ConversionCancelled(f"Extraction cancelled after {i}/{count} frames")
        timestamp = i / fps
        frames.append(await capture_frame(video, timestamp, seek_timeout))
        logger.debug("Captured frame %d/%d at %.3fs", i + 1, count, timestamp)

    return frames


async def video_frame_to_ascii(video, target_width, timestamp=0.0,
                               seek_timeout=DEFAULT_SEEK_TIMEOUT, ramp=ASCII_CHARS):
    """Convert the single frame shown at timestamp to a character grid."""
    frame = await capture_frame(video, timestamp, seek_timeout)
    return image_to_ascii_sync(frame, target_width, ramp)


async def video_to_ascii_frames(video, fps, target_width, on_progress=None,
                                seek_timeout=DEFAULT_SEEK_TIMEOUT, cancel=None,
                                ramp=ASCII_CHARS):
    """Extract frames at fps and convert each one; returns the frame sequence."""
    frames = await extract_video_frames(video, fps, seek_timeout, cancel)
    return frames_to_ascii(frames, target_width, on_progress, ramp)
