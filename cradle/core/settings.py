"""App settings, loaded from environment variables with defaults."""

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Settings:
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    DATABASE_URL: str = os.getenv("DB_CONNECTION_STRING", "")
    DB_SCHEMA: str = os.getenv("DB_SCHEMA", "public")

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]
    CORS_EXTRA_ORIGINS: str = os.getenv("CORS_EXTRA_ORIGINS", "")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Day boundaries (daily summaries, trend windows, cache keys) are cut in this zone
    INSIGHTS_TIMEZONE: str = os.getenv("INSIGHTS_TIMEZONE", "UTC")

    # Empty = in-process cache
    REDIS_URL: str = os.getenv("REDIS_URL", "")

    # gemini | ollama | none
    AI_PROVIDER: str = os.getenv("AI_PROVIDER", "gemini").lower()
    AI_DEFAULT_TIMEOUT_SECONDS: int = int(os.getenv("AI_DEFAULT_TIMEOUT_SECONDS", "60"))

    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL_INSIGHTS: str = os.getenv("GEMINI_MODEL_INSIGHTS", "models/gemini-2.5-flash")

    OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "llama3")

    # Added to sleep-prediction confidence when the AI analysis succeeds
    AI_CONFIDENCE_BOOST: float = float(os.getenv("AI_CONFIDENCE_BOOST", "0.1"))


settings = Settings()
