"""
Error kinds raised by detkit.

Each kind also derives from the matching builtin so callers that catch
ValueError / RuntimeError keep working.
"""


class DetectError(Exception):
    """Base error for known detection failures."""


class InvalidInput(DetectError, ValueError):
    """Raised for non-positive dimensions, unreadable images or malformed config."""


class ShapeError(DetectError, ValueError):
    """Raised when a tensor does not match the expected anchor/attribute layout."""


class InvalidThreshold(DetectError, ValueError):
    """Raised when a confidence or IoU threshold is outside [0, 1]."""


class BackendError(DetectError, RuntimeError):
    """Raised when OpenCV or an inference runtime fails."""
