"""
Configuration management for adspy
"""

import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration"""

    # Supabase
    SUPABASE_URL: str = os.getenv('SUPABASE_URL', '')
    SUPABASE_SERVICE_KEY: str = os.getenv('SUPABASE_SERVICE_KEY', '')

    # Apify
    APIFY_TOKEN: str = os.getenv('APIFY_TOKEN', '')

    # Gemini
    GEMINI_API_KEY: str = os.getenv('GEMINI_API_KEY', '')
    GEMINI_REQUESTS_PER_MINUTE: int = int(os.getenv('GEMINI_REQUESTS_PER_MINUTE', '30'))

    # Retrieval defaults
    DEFAULT_PLATFORM: str = os.getenv('AD_PLATFORM', 'facebook')
    DEFAULT_ADS_PER_BRAND: int = int(os.getenv('ADS_PER_BRAND', '5'))
    DEFAULT_DAYS_BACK: int = int(os.getenv('DAYS_BACK', '30'))
    RETRIEVAL_TIMEOUT_SEC: float = float(os.getenv('RETRIEVAL_TIMEOUT_SEC', '300'))

    # Classification defaults
    CLASSIFICATION_BATCH_SIZE: int = int(os.getenv('CLASSIFICATION_BATCH_SIZE', '8'))
    CLASSIFICATION_MAX_TEXT_CHARS: int = int(os.getenv('CLASSIFICATION_MAX_TEXT_CHARS', '400'))
    CLASSIFICATION_CONCURRENCY: int = int(os.getenv('CLASSIFICATION_CONCURRENCY', '1'))
    CLASSIFICATION_TIMEOUT_SEC: float = float(os.getenv('CLASSIFICATION_TIMEOUT_SEC', '120'))

    # Recommendation defaults
    RECOMMENDATION_TIMEOUT_SEC: float = float(os.getenv('RECOMMENDATION_TIMEOUT_SEC', '120'))

    @classmethod
    def validate(cls) -> bool:
        """Validate required configuration"""
        required = {
            'SUPABASE_URL': cls.SUPABASE_URL,
            'SUPABASE_SERVICE_KEY': cls.SUPABASE_SERVICE_KEY,
        }

        missing = [k for k, v in required.items() if not v]

        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        return True

    # ========================================================================
    # Model Configuration
    # ========================================================================

    DEFAULT_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    # Per-component pins; None follows DEFAULT_MODEL (GEMINI_MODEL)
    CLASSIFIER_MODEL: Optional[str] = None
    RECOMMENDATION_MODEL: Optional[str] = None

    @classmethod
    def get_model(cls, key: str) -> str:
        """
        Get the configured LLM model for a specific component.

        Resolution Order:
        1. Environment Variable: {KEY}_MODEL (e.g. CLASSIFIER_MODEL)
        2. Per-component pin (CLASSIFIER_MODEL, RECOMMENDATION_MODEL) when set
        3. Config.DEFAULT_MODEL

        Args:
            key: component name (e.g., 'classifier', 'recommendation').
                 keys are case-insensitive.

        Returns:
            Model string identifier (e.g., 'gemini-2.0-flash')
        """
        key_upper = key.upper()

        env_model = os.getenv(f"{key_upper}_MODEL")
        if env_model:
            return env_model

        mappings = {
            "CLASSIFIER": cls.CLASSIFIER_MODEL,
            "RECOMMENDATION": cls.RECOMMENDATION_MODEL,
        }

        if mappings.get(key_upper):
            return mappings[key_upper]

        return cls.DEFAULT_MODEL
