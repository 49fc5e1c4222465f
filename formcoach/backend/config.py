# formcoach/backend/config.py

import os
from dataclasses import dataclass

import dotenv

dotenv.load_dotenv()


@dataclass(frozen=True)
class BackendSettings:
    llm_provider: str = os.getenv("LLM_PROVIDER", "groq").lower()
    groq_api_key: str = os.getenv("GROQ_API_KEY", "")
    groq_model: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    google_api_key: str = os.getenv("GOOGLE_API_KEY", "")
    google_model: str = os.getenv("GOOGLE_MODEL", "gemini-2.5-flash-lite")
    temperature: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    timeout: float = float(os.getenv("LLM_TIMEOUT", "1.5"))
    max_retries: int = 1


settings = BackendSettings()
