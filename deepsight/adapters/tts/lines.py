# Line key constants
ACTIVATED = "ACTIVATED"          # spoken once when the user starts scanning

# Text content: fallback text when the audio file is missing
LINE_TEXT: dict[str, str] = {
    ACTIVATED: "DeepSight Active",
}

# Audio file for each line key (placed under assets/<filename>)
LINE_AUDIO: dict[str, str] = {
    ACTIVATED: "deepsight_active.mp3",
}

BEEP_AUDIO = "beep.wav"

# Advice texts surfaced to observers
ADVICE_BOOTING = "Booting DeepSight Core..."
ADVICE_CONNECTING_CAMERA = "Connecting to Vision Hardware..."
ADVICE_READY = "System Ready. Scanning..."
ADVICE_INERT = "Scanning disabled: no API key configured."
ADVICE_CAMERA_UNAVAILABLE = "Camera Unavailable"
ADVICE_CAMERA_OFFLINE = "Vision System Offline"
ADVICE_RETRYING = "Retrying connection..."
ADVICE_NO_ANALYSIS = "No analysis returned."
ADVICE_PAUSED = "Paused."
