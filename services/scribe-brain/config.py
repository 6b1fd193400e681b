"""Environment-based configuration for the scribe brain (document metadata extraction)."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Scribe brain settings, loaded from environment variables."""

    # Server
    PORT: int = 8092

    # Configuration directory (prompt template, taxonomy lists, correction log)
    CONFIG_DIR: str = str(Path.home() / ".metascribe")

    # Gemini connection (empty key = read api_key.txt from CONFIG_DIR)
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-1.5-pro-latest"
    GEMINI_TIMEOUT_SECONDS: int = 120
    GEMINI_CONNECT_TIMEOUT: int = 30

    # Upload payload and few-shot examples
    JPEG_QUALITY: int = 80  # 0.8 compression factor
    CORRECTION_EXAMPLES_LIMIT: int = 2

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
