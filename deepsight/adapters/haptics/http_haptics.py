"""
HTTP adapter for a paired vibration wearable.

Default contract:
  Request:  POST /vibrate  {"pattern": [0, 500, 200, 500]}
  Response: {"ok": true}   (or {"ok": false, "error": "..."})
  GET /status -> {"ok": true, "vibrator": true}
"""

import httpx


class HttpVibration:
    def __init__(self, status_store, base_url: str = "http://127.0.0.1:9100", timeout: float = 1.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.status = status_store
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)
        self._available: bool | None = None

    async def _post(self, path: str, payload: dict | None = None) -> dict:
        self.status.log(f"http_haptics: POST {path}")
        resp = await self._client.post(path, json=payload or {})
        resp.raise_for_status()
        data = resp.json()
        if not data.get("ok", True):
            raise RuntimeError(f"wearable error on {path}: {data.get('error', 'unknown')}")
        return data

    async def _get(self, path: str) -> dict:
        resp = await self._client.get(path)
        resp.raise_for_status()
        return resp.json()

    async def has_vibrator(self) -> bool:
        # probed once; the wearable does not change capability while paired
        if self._available is None:
            try:
                self._available = bool((await self._get("/status")).get("vibrator", False))
            except httpx.HTTPError as e:
                self.status.log(f"http_haptics: wearable unreachable: {e}")
                return False
        return self._available

    async def vibrate(self, pattern):
        await self._post("/vibrate", {"pattern": list(pattern)})

    async def aclose(self):
        await self._client.aclose()
