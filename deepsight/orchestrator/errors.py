"""Error codes and the normalized failure kinds raised at adapter boundaries."""
from typing import Optional

ERR_BUSY = "ERR_BUSY"
ERR_TIMEOUT = "ERR_TIMEOUT"
ERR_RATE_LIMITED = "ERR_RATE_LIMITED"
ERR_SERVICE = "ERR_SERVICE"
ERR_HARDWARE_UNAVAILABLE = "ERR_HARDWARE_UNAVAILABLE"
ERR_NO_DEVICE = "ERR_NO_DEVICE"
ERR_CAPTURE = "ERR_CAPTURE"
ERR_PARSE_ANOMALY = "ERR_PARSE_ANOMALY"
ERR_UNKNOWN = "ERR_UNKNOWN"


class DeepSightError(Exception):
    code = ERR_UNKNOWN


# ── camera ──────────────────────────────────────────────────────────────────

class CameraError(DeepSightError):
    pass


class HardwareUnavailable(CameraError):
    code = ERR_HARDWARE_UNAVAILABLE


class NoDeviceFound(CameraError):
    code = ERR_NO_DEVICE


class CaptureError(CameraError):
    code = ERR_CAPTURE


# ── inference ───────────────────────────────────────────────────────────────

class InferenceError(DeepSightError):
    pass


class InferenceTimeout(InferenceError):
    code = ERR_TIMEOUT


class RateLimited(InferenceError):
    code = ERR_RATE_LIMITED

    def __init__(self, message: str = "rate limited", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ServiceError(InferenceError):
    code = ERR_SERVICE


class ParseAnomaly(DeepSightError):
    """Marker for responses outside the verdict grammar. Logged, never raised."""
    code = ERR_PARSE_ANOMALY


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds from a Retry-After header; HTTP-date values are ignored."""
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None
