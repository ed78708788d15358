"""Mock camera: serves JPEGs from a frames directory (or a placeholder) for testing."""
import random
from pathlib import Path
from typing import Optional, Sequence
from deepsight.adapters.camera.base import CameraAdapter
from deepsight.orchestrator.contracts import CaptureProfile, DeviceDescriptor, DeviceHandle

FRAMES_DIR = Path(__file__).parent / "frames"

# Smallest valid JPEG-ish payload: SOI + EOI markers
_PLACEHOLDER = b"\xff\xd8\xff\xd9"

_DEFAULT_DEVICES = [
    DeviceDescriptor(device_id="mock-front", name="Mock Front", lens="front"),
    DeviceDescriptor(device_id="mock-back", name="Mock Back", lens="back"),
]


class MockCamera(CameraAdapter):
    def __init__(self, status_store, devices: Optional[Sequence[DeviceDescriptor]] = None,
                 frames_dir: Optional[str] = None,
                 profile: CaptureProfile = CaptureProfile.GENERIC, enumerate_timeout_s: float = 6.0):
        super().__init__(status_store, profile=profile, enumerate_timeout_s=enumerate_timeout_s)
        self.devices = list(_DEFAULT_DEVICES if devices is None else devices)
        self.frames_dir = Path(frames_dir) if frames_dir else FRAMES_DIR

    async def _enumerate(self):
        return self.devices

    async def _open_device(self, descriptor: DeviceDescriptor) -> DeviceHandle:
        return DeviceHandle(descriptor=descriptor)

    async def _capture(self, handle: DeviceHandle) -> bytes:
        jpegs = list(self.frames_dir.glob("*.jpg")) if self.frames_dir.is_dir() else []
        if not jpegs:
            return _PLACEHOLDER
        chosen = random.choice(jpegs)
        self.status.log(f"mock_camera: serving {chosen.name}")
        return chosen.read_bytes()
