"""
Errors raised by the ASCII conversion pipeline.

Every failure aborts the current conversion; nothing here is retried.
"""


class AsciiArtError(Exception):
    """Base class for conversion failures."""


class InvalidArgumentError(AsciiArtError, ValueError):
    """A caller-supplied value is outside its contract (width, fps, ramp)."""


class CapacityExceededError(AsciiArtError):
    """The requested number of video frames is above the frame ceiling."""

    def __init__(self, requested, ceiling):
        self.requested = requested
        self.ceiling = ceiling
        super().__init__(
            f"Frame count ({requested}) exceeds maximum ({ceiling}). "
            "Lower the fps or use a shorter video."
        )


class ResourceUnavailableError(AsciiArtError):
    """A pixel buffer could not be read."""


class DecodeError(AsciiArtError):
    """An image or video never became ready for conversion."""


class SeekError(AsciiArtError):
    """A video position change never completed or the source failed."""

    def __init__(self, timestamp, reason):
        self.timestamp = timestamp
        super().__init__(f"Seek to {timestamp:.3f}s failed: {reason}")


class ConversionCancelled(AsciiArtError):
    """Frame extraction was abandoned by the caller."""
