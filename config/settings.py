"""Application settings using Pydantic Settings."""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Firebase Configuration
    # Either a service account JSON file or the discrete variables below
    firebase_service_account_path: str = ""
    firebase_project_id: str = ""
    firebase_private_key_id: str = ""
    firebase_private_key: str = ""
    firebase_client_email: str = ""
    firebase_client_id: str = ""
    firebase_client_x509_cert_url: str = ""
    firebase_storage_bucket: str = ""

    # Spoonacular API
    spoonacular_api_key: str = ""
    recipe_cache_days: int = 7

    # OpenFoodFacts API
    openfoodfacts_base_url: str = "https://world.openfoodfacts.org"
    openfoodfacts_timeout: float = 15.0
    food_cache_ttl_seconds: int = 86400
    food_cache_check_period_seconds: int = 10800

    # Email Configuration (Gmail SMTP)
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    email_user: str = ""
    email_app_password: str = ""
    email_from_name: str = "BiteWise 🍽️"

    # Push Notifications
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"
    motivation_times: List[str] = ["08:00", "19:00"]
    motivation_batch_limit: int = 100
    motivation_delay_seconds: float = 0.5

    # Application Configuration
    app_name: str = "BiteWise API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    scheduler_enabled: bool = True

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 3000

    # CORS Configuration
    cors_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
