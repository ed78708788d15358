import asyncio
from abc import ABC, abstractmethod
from typing import Sequence

from deepsight.orchestrator.contracts import CaptureProfile, DeviceDescriptor, DeviceHandle
from deepsight.orchestrator.errors import (
    CameraError, CaptureError, HardwareUnavailable, NoDeviceFound,
)


class CameraAdapter(ABC):
    """
    Camera lifecycle: enumerate -> open -> capture -> release.

    Public methods never leak backend exceptions; everything is normalized to
    HardwareUnavailable / NoDeviceFound / CaptureError here.
    """

    def __init__(self, status_store, profile: CaptureProfile = CaptureProfile.GENERIC,
                 enumerate_timeout_s: float = 6.0):
        self.status = status_store
        self.profile = profile
        self.enumerate_timeout_s = enumerate_timeout_s

    @abstractmethod
    async def _enumerate(self) -> Sequence[DeviceDescriptor]:
        ...

    @abstractmethod
    async def _open_device(self, descriptor: DeviceDescriptor) -> DeviceHandle:
        ...

    @abstractmethod
    async def _capture(self, handle: DeviceHandle) -> bytes:
        """Capture one still frame. Returns JPEG bytes."""
        ...

    async def _close_device(self, handle: DeviceHandle):
        pass

    async def list_devices(self) -> list[DeviceDescriptor]:
        try:
            devices = await asyncio.wait_for(self._enumerate(), timeout=self.enumerate_timeout_s)
        except asyncio.TimeoutError:
            self.status.log(f"camera: enumeration timed out after {self.enumerate_timeout_s}s")
            raise HardwareUnavailable("camera enumeration timed out")
        except CameraError:
            raise
        except Exception as e:
            self.status.log(f"camera: enumeration failed {type(e).__name__}: {e}")
            raise HardwareUnavailable(str(e)) from e
        return list(devices)

    async def open(self, prefer_back_facing: bool = True) -> DeviceHandle:
        devices = await self.list_devices()
        if not devices:
            self.status.log("camera: no cameras found or access denied")
            raise NoDeviceFound("no capture devices")

        chosen = devices[0]
        if prefer_back_facing:
            chosen = next((d for d in devices if d.lens == "back"), devices[0])

        try:
            handle = await self._open_device(chosen)
        except CameraError:
            raise
        except Exception as e:
            self.status.log(f"camera: open {chosen.device_id} failed {type(e).__name__}: {e}")
            raise HardwareUnavailable(str(e)) from e
        self.status.log(f"camera: opened {chosen.name} ({chosen.lens}, profile={self.profile.value})")
        return handle

    async def capture_still(self, handle: DeviceHandle) -> bytes:
        if handle.released:
            raise CaptureError("device handle already released")
        try:
            return await self._capture(handle)
        except CameraError:
            raise
        except Exception as e:
            self.status.log(f"camera: capture failed {type(e).__name__}: {e}")
            raise CaptureError(str(e)) from e

    async def release(self, handle: DeviceHandle):
        if handle.released:
            return
        handle.released = True
        try:
            await self._close_device(handle)
        except Exception as e:
            self.status.log(f"camera: release error {type(e).__name__}: {e}")
        self.status.log(f"camera: released {handle.descriptor.name}")
