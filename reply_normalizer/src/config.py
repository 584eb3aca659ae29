import os
from typing import Optional


class Config:
    """Centralized configuration management for the reply normalizer."""

    # Ollama Configuration
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "llama3.2")
    OLLAMA_TIMEOUT: float = float(os.getenv("OLLAMA_TIMEOUT", "120"))
    OLLAMA_KEEP_ALIVE: Optional[str] = os.getenv("OLLAMA_KEEP_ALIVE")

    # Retry Configuration
    RETRY_MAX_ATTEMPTS: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    RETRY_INCLUDE_ERROR_CONTEXT: bool = str(os.getenv("RETRY_INCLUDE_ERROR_CONTEXT", "1")).lower() in {"1", "true", "yes"}
    RETRY_DELAY: float = float(os.getenv("RETRY_DELAY", "0.5"))

    # Streaming Configuration
    STREAM_MIN_CONTENT_FOR_PARSE: int = int(os.getenv("STREAM_MIN_CONTENT_FOR_PARSE", "10"))
    STREAM_YIELD_PARTIAL: bool = str(os.getenv("STREAM_YIELD_PARTIAL", "1")).lower() in {"1", "true", "yes"}

    # Logging Controls
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_PREVIEW_MAX: int = int(os.getenv("LOG_PREVIEW_MAX", "500"))
    RETRY_EXCERPT_MAX: int = int(os.getenv("RETRY_EXCERPT_MAX", "300"))
