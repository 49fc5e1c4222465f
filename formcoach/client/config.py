# formcoach/client/config.py

import os
from dataclasses import dataclass

import dotenv

dotenv.load_dotenv()


@dataclass(frozen=True)
class ClientSettings:
    # Backend (FastAPI) endpoint
    backend_url: str = os.getenv("FORMCOACH_BACKEND_URL", "http://127.0.0.1:8000/analyze_form")
    # If the coach is slow we fall back instead of waiting
    advisory_timeout: float = float(os.getenv("FORMCOACH_ADVISORY_TIMEOUT", "2.0"))
    smoothing_window: int = int(os.getenv("FORMCOACH_SMOOTHING_WINDOW", "3"))
    tts_rate: int = int(os.getenv("FORMCOACH_TTS_RATE", "165"))
    log_level: str = os.getenv("FORMCOACH_LOG_LEVEL", "INFO").upper()


settings = ClientSettings()
