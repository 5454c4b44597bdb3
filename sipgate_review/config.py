"""Application configuration and environment settings"""
from typing import Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class SipgateSettings(BaseModel):
    """sipgate API specific settings"""
    token: Optional[str] = Field(None, description="sipgate OAuth bearer token")
    base_url: str = Field(..., description="sipgate REST API base URL")
    timeout_seconds: float = Field(..., description="Per-request HTTP timeout")

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Credentials - supplied by the login flow, never refreshed here
    SIPGATE_TOKEN: Optional[str] = Field(None, description="sipgate API access token")

    # sipgate API
    SIPGATE_API_URL: str = Field("https://api.sipgate.com/v2", description="sipgate REST API base URL")
    SIPGATE_TIMEOUT_SECONDS: float = Field(15.0, description="Timeout for a single history page request")

    # Review options
    REVIEW_YEAR: Optional[int] = Field(None, description="Year to review, defaults to the current UTC year")
    SHARE_REVIEW: bool = Field(False, description="Store an anonymized copy of the review for sharing")

    # Share store
    DATABASE_URL: str = Field("sqlite:///shares.db", description="SQLAlchemy URL of the share store")

    # Output and logging
    OUTPUT_DIR: str = Field("/output", description="Directory for output files")
    LOG_LEVEL: str = Field("INFO", description="Root logging level")

    @property
    def sipgate_settings(self) -> SipgateSettings:
        """Get sipgate settings as a separate model"""
        return SipgateSettings(
            token=self.SIPGATE_TOKEN,
            base_url=self.SIPGATE_API_URL,
            timeout_seconds=self.SIPGATE_TIMEOUT_SECONDS
        )

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

settings = Settings()
