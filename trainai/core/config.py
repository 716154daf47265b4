"""Configuration management for the Training AI Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")
    DOCUMENTS_BUCKET: str = Field(default="documents", description="Storage bucket for certificate uploads")

    # OpenAI-compatible chat completions endpoint (required key)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")
    OPENAI_BASE_URL: str = Field(default="https://api.openai.com/v1", description="Chat completions base URL")
    OPENAI_MODEL: str = Field(default="gpt-4o", description="Model for assistant chat and field extraction")
    VISION_MODEL: str = Field(default="gpt-4o", description="Vision-capable model for OCR")

    # Environment
    TRAINAI_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Assistant chat
    CHAT_MAX_TOKENS: int = Field(default=4000, description="Max tokens for assistant replies")
    CHAT_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature for assistant replies")
    CHAT_HISTORY_LIMIT: int = Field(default=10, description="Prior turns forwarded to the model")

    # Extraction calls
    EXTRACTION_MAX_TOKENS: int = Field(default=2000, description="Max tokens for extraction/OCR calls")
    EXTRACTION_TEMPERATURE: float = Field(default=0.1, description="Temperature for extraction/OCR calls")

    # Retry policy for provider calls
    RETRY_MAX_ATTEMPTS: int = Field(default=5, description="Attempts before a provider call is abandoned")
    RETRY_BASE_DELAY_MS: int = Field(default=3000, description="First backoff delay in milliseconds")
    RETRY_BACKOFF_FACTOR: float = Field(default=2.0, description="Backoff multiplier per attempt")
    RETRY_CAP_MS: int = Field(default=30000, description="Upper bound for a single backoff delay")

    # Document pipeline
    MIN_TEXT_LAYER_CHARS: int = Field(
        default=10, description="Below this many text-layer chars a PDF is treated as scanned"
    )
    OCR_MAX_PAGES: int = Field(default=3, description="Pages rendered for vision OCR")
    OCR_RENDER_DPI: int = Field(default=150, description="Render resolution for OCR pages")

    # Platform context summary sizes
    CONTEXT_EMPLOYEE_LIMIT: int = Field(default=10, description="Employees listed in the prompt")
    CONTEXT_COURSE_LIMIT: int = Field(default=8, description="Courses listed in the prompt")
    CONTEXT_TRAINING_LIMIT: int = Field(default=8, description="Upcoming trainings listed in the prompt")
    CONTEXT_CERTIFICATE_LIMIT: int = Field(default=5, description="Expiring certificates listed in the prompt")
    EXPIRING_CERTIFICATE_WINDOW_DAYS: int = Field(
        default=90, description="Certificates expiring within this many days count as expiring"
    )

    # Audit
    AUDIT_FAILED_ATTEMPTS: bool = Field(
        default=False, description="Also audit denied or rejected mutation attempts"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
