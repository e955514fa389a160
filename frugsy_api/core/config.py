"""Configuration and settings"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Google Maps API (geocoding + nearby search)
    google_maps_api_key: str = Field(default="")
    maps_base_url: str = Field(default="https://maps.googleapis.com/maps/api")
    place_types: str = Field(default="grocery_or_supermarket|supermarket")
    http_timeout_seconds: float = Field(default=20.0)

    # OpenAI API (price lookup + image synthesis)
    openai_api_key: str = Field(default="")
    openai_base_url: Optional[str] = Field(default=None)
    price_model: str = Field(default="gpt-4.1")
    price_temperature: float = Field(default=0.1)
    price_lookup_timeout_seconds: float = Field(default=120.0)
    image_model: str = Field(default="gpt-image-1")
    image_timeout_seconds: float = Field(default=120.0)
    enable_image_generation: bool = Field(default=True)

    # Search defaults
    default_radius_miles: float = Field(default=5.0)

    # Server
    backend_host: str = Field(default="localhost")
    backend_port: int = Field(default=8000)
    log_level: str = Field(default="INFO")

    # Frontend
    frontend_url: str = Field(default="http://localhost:5173")

    # Environment
    environment: str = Field(default="development")

    # API Configuration
    api_title: str = "Frugsy Price Search API"
    api_version: str = "0.1.0"


# Global settings instance
settings = Settings()
