"""
KIMI (Moonshot AI) vision client.
Uses KIMI's OpenAI-compatible chat API with multimodal input.
Requires KIMI_API_KEY.
"""
import base64
import httpx
from deepsight.adapters.vision.base import VisionAdapter
from deepsight.adapters.vision.prompt import SYSTEM_PROMPT, TEMPERATURE, MAX_OUTPUT_TOKENS
from deepsight.orchestrator.errors import (
    InferenceTimeout, RateLimited, ServiceError, parse_retry_after,
)

KIMI_API_URL = "https://api.moonshot.cn/v1/chat/completions"


class KimiVision(VisionAdapter):
    name = "kimi_vision"

    def __init__(self, status_store, api_key: str, model: str = "moonshot-v1-8k-vision-preview",
                 timeout_s: float = 5.0, api_url: str = KIMI_API_URL,
                 transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(status_store, timeout_s=timeout_s)
        self._api_key = api_key
        self.model = model
        self.api_url = api_url
        self._client = httpx.AsyncClient(transport=transport)
        self.status.log(f"kimi_vision: ready (model={model})")

    async def _generate(self, image_bytes: bytes, prompt: str) -> str:
        b64 = base64.standard_b64encode(image_bytes).decode("utf-8")
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:image/jpeg;base64,{b64}", "detail": "low"},
                        },
                        {"type": "text", "text": prompt},
                    ],
                },
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_OUTPUT_TOKENS,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            resp = await self._client.post(self.api_url, json=payload, headers=headers, timeout=self.timeout_s)
        except httpx.TimeoutException as e:
            raise InferenceTimeout(str(e)) from e
        except httpx.HTTPError as e:
            raise ServiceError(f"transport: {e}") from e

        if resp.status_code == 429:
            raise RateLimited(f"HTTP 429 — {resp.text[:200]}",
                              retry_after=parse_retry_after(resp.headers.get("retry-after")))
        if not resp.is_success:
            raise ServiceError(f"HTTP {resp.status_code} — {resp.text[:300]}")

        try:
            raw = resp.json()["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ServiceError(f"malformed response: {e}") from e
        raw = raw.strip()
        self.status.log(f"kimi_vision: raw='{raw}'")
        return raw

    async def aclose(self):
        await self._client.aclose()
