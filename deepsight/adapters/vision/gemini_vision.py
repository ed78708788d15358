"""
Gemini vision client over the REST generateContent endpoint.
Requires GEMINI_API_KEY. Uses httpx, no Google SDK.
"""
import base64
import httpx
from deepsight.adapters.vision.base import VisionAdapter
from deepsight.adapters.vision.prompt import SYSTEM_PROMPT, TEMPERATURE, MAX_OUTPUT_TOKENS
from deepsight.orchestrator.errors import (
    InferenceTimeout, RateLimited, ServiceError, parse_retry_after,
)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiVision(VisionAdapter):
    name = "gemini_vision"

    def __init__(self, status_store, api_key: str, model: str = "gemini-1.5-flash",
                 timeout_s: float = 5.0, base_url: str = GEMINI_API_BASE,
                 transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(status_store, timeout_s=timeout_s)
        self._api_key = api_key
        self.model = model
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), transport=transport)
        self.status.log(f"gemini_vision: ready (model={model})")

    async def _generate(self, image_bytes: bytes, prompt: str) -> str:
        b64 = base64.standard_b64encode(image_bytes).decode("utf-8")
        payload = {
            "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": prompt},
                        {"inlineData": {"mimeType": "image/jpeg", "data": b64}},
                    ],
                }
            ],
            "generationConfig": {
                "temperature": TEMPERATURE,
                "maxOutputTokens": MAX_OUTPUT_TOKENS,
            },
        }
        try:
            resp = await self._client.post(
                f"/models/{self.model}:generateContent",
                params={"key": self._api_key},
                json=payload,
                timeout=self.timeout_s,
            )
        except httpx.TimeoutException as e:
            raise InferenceTimeout(str(e)) from e
        except httpx.HTTPError as e:
            raise ServiceError(f"transport: {e}") from e

        if resp.status_code == 429:
            raise RateLimited(f"HTTP 429 — {resp.text[:200]}",
                              retry_after=parse_retry_after(resp.headers.get("retry-after")))
        if not resp.is_success:
            raise ServiceError(f"HTTP {resp.status_code} — {resp.text[:300]}")

        data = resp.json()
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        raw = "".join(p.get("text", "") for p in parts).strip()
        self.status.log(f"gemini_vision: raw='{raw}'")
        return raw

    async def aclose(self):
        await self._client.aclose()
