"""
Pre-generate the bundled audio assets.

  - fixed voice lines via edge-tts (pip install edge-tts)
  - the short danger beep, synthesized as a 880 Hz sine burst

Usage:
    python -m deepsight.scripts.gen_assets

Output:
    deepsight/adapters/tts/assets/*.mp3
    deepsight/adapters/tts/assets/beep.wav
"""

import asyncio
import os
import wave
import numpy as np
import edge_tts
from deepsight.adapters.tts.lines import BEEP_AUDIO, LINE_AUDIO, LINE_TEXT

ASSETS_DIR = os.path.join(os.path.dirname(__file__), "..", "adapters", "tts", "assets")

VOICE = "en-US-AriaNeural"

SAMPLE_RATE = 22050
BEEP_HZ = 880
BEEP_MS = 120


async def generate_line(line_key: str, text: str):
    out_path = os.path.join(ASSETS_DIR, LINE_AUDIO[line_key])
    communicate = edge_tts.Communicate(text, VOICE)
    await communicate.save(out_path)
    print(f"  {line_key} -> {LINE_AUDIO[line_key]}")


def generate_beep():
    n = int(SAMPLE_RATE * BEEP_MS / 1000)
    t = np.arange(n) / SAMPLE_RATE
    # 10ms fade in/out to avoid clicks
    fade = np.minimum(1.0, np.minimum(np.arange(n), np.arange(n)[::-1]) / (SAMPLE_RATE * 0.01))
    samples = (np.sin(2 * np.pi * BEEP_HZ * t) * fade * 0.8 * 32767).astype(np.int16)
    out_path = os.path.join(ASSETS_DIR, BEEP_AUDIO)
    with wave.open(out_path, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(SAMPLE_RATE)
        w.writeframes(samples.tobytes())
    print(f"  beep -> {BEEP_AUDIO}")


async def main():
    os.makedirs(ASSETS_DIR, exist_ok=True)
    print("Generating assets...")
    generate_beep()
    await asyncio.gather(*(generate_line(k, LINE_TEXT[k]) for k in LINE_AUDIO))
    print("Done. Files saved to adapters/tts/assets/")


if __name__ == "__main__":
    asyncio.run(main())
