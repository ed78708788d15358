"""
Fake vibration wearable for testing HttpVibration without hardware.

Serves on port 9100. /vibrate logs the pattern, sleeps for its duration
(simulating the motor), and returns {"ok": true}.

Usage:
    python deepsight/scripts/fake_haptic_server.py
    HAPTICS_ADAPTER=http uvicorn deepsight.services.api:app
"""

import time
import uvicorn
from fastapi import FastAPI, Request

app = FastAPI(title="fake-haptic-server")


@app.post("/vibrate")
async def vibrate(request: Request):
    body = await request.json()
    pattern = body.get("pattern", [])
    if not isinstance(pattern, list) or not all(isinstance(x, int) and x >= 0 for x in pattern):
        return {"ok": False, "error": "pattern must be a list of non-negative ms durations"}
    # even slots are pauses, odd slots are buzzes
    on_ms = sum(pattern[1::2])
    print(f"[haptics] vibrate {pattern} — buzzing {on_ms}ms ...")
    time.sleep(sum(pattern) / 1000)
    print("[haptics] done")
    return {"ok": True}


@app.get("/status")
async def status():
    return {"ok": True, "vibrator": True}


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=9100)
