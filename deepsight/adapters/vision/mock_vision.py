import asyncio
import itertools
from typing import Iterable, Optional, Union
from deepsight.adapters.vision.base import VisionAdapter

_DEFAULT_REPLIES = [
    "SAFE : Path Clear.",
    "CAUTION : Left - 3 steps.",
    "DANGER : Forward - 2 steps.",
]

Reply = Union[str, BaseException]


class MockVision(VisionAdapter):
    """Cycles through scripted replies. Exceptions in the script are raised."""
    name = "mock_vision"

    def __init__(self, status_store, replies: Optional[Iterable[Reply]] = None,
                 delay_s: float = 0.0, timeout_s: float = 5.0):
        super().__init__(status_store, timeout_s=timeout_s)
        self._replies = itertools.cycle(list(replies) if replies is not None else _DEFAULT_REPLIES)
        self.delay_s = delay_s
        self.calls = 0

    async def _generate(self, image_bytes: bytes, prompt: str) -> str:
        self.calls += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        reply = next(self._replies)
        if isinstance(reply, BaseException):
            raise reply
        self.status.log(f"mock_vision: {reply}")
        return reply
