from typing import Sequence

# SOS-like danger pattern: wait, buzz, pause, buzz (ms)
DANGER_PATTERN = [0, 500, 200, 500]


class VibrationAdapter:
    async def has_vibrator(self) -> bool:
        return False

    async def vibrate(self, pattern: Sequence[int]):
        """pattern: alternating off/on durations in milliseconds, starting with off."""
        raise NotImplementedError

    async def aclose(self):
        pass


class NullVibration(VibrationAdapter):
    """No vibration hardware."""
