import asyncio
from abc import ABC, abstractmethod

from deepsight.orchestrator.errors import InferenceError, InferenceTimeout, ServiceError


class VisionAdapter(ABC):
    """
    One call to a remote vision-language model: image + prompt -> reply text.

    classify() makes exactly one attempt under a hard timeout and raises only
    InferenceTimeout / RateLimited / ServiceError. Backoff is the caller's job.
    """

    name = "vision"

    def __init__(self, status_store, timeout_s: float = 5.0):
        self.status = status_store
        self.timeout_s = timeout_s

    @abstractmethod
    async def _generate(self, image_bytes: bytes, prompt: str) -> str:
        ...

    async def classify(self, image_bytes: bytes, prompt: str) -> str:
        try:
            text = await asyncio.wait_for(self._generate(image_bytes, prompt), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            self.status.log(f"{self.name}: timed out after {self.timeout_s}s")
            raise InferenceTimeout(f"no reply within {self.timeout_s}s")
        except InferenceError as e:
            self.status.log(f"{self.name}: {e.code} {e}")
            raise
        except Exception as e:
            self.status.log(f"{self.name}: API error {type(e).__name__}: {e}")
            raise ServiceError(str(e)) from e
        return (text or "").strip()

    async def aclose(self):
        pass
