"""
OpenCV webcam capture adapter.

Devices are found by probing indices 0..CAMERA_PROBE_MAX-1. OpenCV cannot tell
lens direction, so CAMERA_BACK_INDEX marks which index is the rear camera.
Blocking cv2 calls run in a worker thread so the scan loop keeps its thread.
"""
import asyncio
import threading

import cv2
from deepsight.adapters.camera.base import CameraAdapter
from deepsight.orchestrator.contracts import CaptureProfile, DeviceDescriptor, DeviceHandle
from deepsight.orchestrator.errors import CaptureError, HardwareUnavailable

# JPEG quality per capture profile; no effect on loop behaviour
_JPEG_QUALITY = {
    CaptureProfile.NATIVE: 70,
    CaptureProfile.GENERIC: 85,
}


class CV2Camera(CameraAdapter):
    def __init__(self, status_store, profile: CaptureProfile = CaptureProfile.GENERIC,
                 enumerate_timeout_s: float = 6.0, probe_max: int = 4, back_index: int = 0):
        super().__init__(status_store, profile=profile, enumerate_timeout_s=enumerate_timeout_s)
        self._probe_max = probe_max
        self._back_index = back_index
        # cap.read() and cap.release() must not overlap on the same device
        self._locks: dict[str, threading.Lock] = {}

    def _lock(self, handle: DeviceHandle) -> threading.Lock:
        return self._locks.setdefault(handle.descriptor.device_id, threading.Lock())

    def _probe(self) -> list[DeviceDescriptor]:
        found = []
        for index in range(self._probe_max):
            cap = cv2.VideoCapture(index)
            try:
                if cap.isOpened():
                    lens = "back" if index == self._back_index else "external"
                    found.append(DeviceDescriptor(device_id=str(index), name=f"cv2:{index}", lens=lens))
            finally:
                cap.release()
        return found

    async def _enumerate(self):
        return await asyncio.to_thread(self._probe)

    async def _open_device(self, descriptor: DeviceDescriptor) -> DeviceHandle:
        cap = await asyncio.to_thread(cv2.VideoCapture, int(descriptor.device_id))
        if not cap.isOpened():
            cap.release()
            raise HardwareUnavailable(f"failed to open device {descriptor.device_id}")
        return DeviceHandle(descriptor=descriptor, native=cap)

    def _read_jpeg(self, cap, lock: threading.Lock) -> bytes:
        with lock:
            if not cap.isOpened():
                raise CaptureError("device not open")
            ret, frame = cap.read()
        if not ret or frame is None:
            raise CaptureError("frame capture failed")
        ok, buf = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, _JPEG_QUALITY[self.profile]])
        if not ok:
            raise CaptureError("jpeg encode failed")
        return bytes(buf)

    async def _capture(self, handle: DeviceHandle) -> bytes:
        cap = handle.native
        if cap is None:
            raise CaptureError("device not open")
        return await asyncio.to_thread(self._read_jpeg, cap, self._lock(handle))

    @staticmethod
    def _release(cap, lock: threading.Lock):
        with lock:
            if cap.isOpened():
                cap.release()

    async def _close_device(self, handle: DeviceHandle):
        cap = handle.native
        if cap is not None:
            await asyncio.to_thread(self._release, cap, self._lock(handle))
        handle.native = None
