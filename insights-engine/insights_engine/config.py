"""
Configuration module for the Innovation Insights Engine.
Loads environment variables and stores application settings.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Application settings and configuration."""

    # Base Directory
    BASE_DIR: str = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

    # AI gateway (any OpenAI-compatible chat completions endpoint)
    AI_API_KEY: str = os.getenv("AI_API_KEY", os.getenv("OPENAI_API_KEY", ""))
    AI_BASE_URL: str = os.getenv("AI_BASE_URL", "https://ai.gateway.lovable.dev/v1")
    AI_MODEL: str = os.getenv("AI_MODEL", "google/gemini-2.5-flash")

    # Provider API keys (all optional - adapters fall back to free APIs)
    IEEE_API_KEY: str = os.getenv("IEEE_API_KEY", "")
    SERPAPI_KEY: str = os.getenv("SERPAPI_KEY", "")
    EPO_OPS_CONSUMER_KEY: str = os.getenv("EPO_OPS_CONSUMER_KEY", "")
    EPO_OPS_CONSUMER_SECRET: str = os.getenv("EPO_OPS_CONSUMER_SECRET", "")

    # Polite-pool contact for OpenAlex / CrossRef
    CONTACT_EMAIL: str = os.getenv("CONTACT_EMAIL", "research@innovationinsights.com")

    # Application Settings
    APP_NAME: str = "Innovation Insights Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"

    # CORS Settings
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",  # Vite default port
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Search Settings
    DEFAULT_MAX_RESULTS: int = int(os.getenv("DEFAULT_MAX_RESULTS", "20"))
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "30"))  # seconds

    # Document storage
    STORAGE_DIR: str = os.getenv("STORAGE_DIR", os.path.join(BASE_DIR, "storage", "research-documents"))
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))  # 20MB

    @classmethod
    def validate(cls) -> bool:
        """
        Validate that required settings are present.

        Returns:
            bool: True if all required settings are valid
        """
        if not cls.AI_API_KEY:
            print("Warning: AI_API_KEY not set in environment variables (synthesis disabled)")
            return False
        return True


settings = Settings()
