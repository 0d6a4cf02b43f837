"""
API configuration settings.
"""

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""
    
    # API Settings
    api_title: str = "Library API"
    api_version: str = "1.0.0"
    api_description: str = (
        "API for managing a library of books: CRUD, bulk insert, pagination "
        "and typo-tolerant fuzzy search over title, author and genre"
    )
    docs_url: str = "/api-docs"
    
    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    
    # Request Limits
    max_bulk_insert: int = 20  # books per POST /books request
    default_page_size: int = 10
    max_page_size: int = 100
    
    # CORS Settings
    cors_origins: list = ["*"]  # Configure appropriately for production
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["*"]
    
    # Logging
    log_level: str = "INFO"
    
    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }


# Global config instance
config = APIConfig()
