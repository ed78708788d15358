from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Literal

LensDirection = Literal["back", "front", "external"]


class SystemState(str, Enum):
    INITIALIZING = "initializing"
    READY = "ready"
    PROCESSING = "processing"
    CAMERA_FAILURE = "camera_failure"   # absorbing until retry
    ERROR = "error"                     # absorbing until retry


class Severity(str, Enum):
    DANGER = "danger"
    CAUTION = "caution"
    SAFE = "safe"
    UNKNOWN = "unknown"


class CaptureProfile(str, Enum):
    NATIVE = "native"     # platform-efficient encoding
    GENERIC = "generic"


@dataclass(frozen=True)
class HazardVerdict:
    severity: Severity
    raw_text: str
    direction: Optional[str] = None
    distance_steps: Optional[float] = None
    distance_unit: Optional[str] = None   # "steps" | "meters"
    # advisory verdicts (e.g. "retrying") only update advice, never alert
    advisory: bool = False

    @property
    def is_danger(self) -> bool:
        return self.severity is Severity.DANGER

    @property
    def display_text(self) -> str:
        return self.raw_text.replace("[", "").replace("]", "").strip()

    @property
    def spoken_text(self) -> str:
        return self.display_text.replace(":", " is ")


@dataclass(frozen=True)
class ScanCycleResult:
    verdict: HazardVerdict
    timestamp: float
    captured_frame_size: int
    fallback: bool = False


@dataclass(frozen=True)
class DeviceDescriptor:
    device_id: str
    name: str
    lens: LensDirection = "external"


@dataclass
class DeviceHandle:
    descriptor: DeviceDescriptor
    native: Any = None   # backend object, e.g. cv2.VideoCapture
    released: bool = False
