"""
Core settings and environment variables for Neighborhood Radar.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """
    
    # Application
    APP_NAME: str = "Neighborhood Radar"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    
    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:8081,http://localhost:19006"
    
    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    REPORTS_COLLECTION: str = "reports"
    
    # In-memory report store for local development without Firebase credentials
    USE_MOCK_DB: bool = False
    
    # Insight engine timings (seconds)
    IDLE_THRESHOLD_SECONDS: float = 10.0
    ANALYSIS_DELAY_SECONDS: float = 12.0
    DISPLAY_DURATION_SECONDS: float = 7.0
    
    # pending -> confirmed once a report has this many confirmations
    CONFIRMATION_THRESHOLD: int = 3
    
    # Allow more than one insight per map session
    REPEAT_INSIGHTS: bool = False
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origin_list(self):
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
