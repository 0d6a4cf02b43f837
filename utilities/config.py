"""
Configuration management using environment variables.
Handles database, logging and search settings with validation and defaults.
"""

from typing import Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from pathlib import Path


class LibraryConfig(BaseSettings):
    """
    Configuration class for the library service.
    Uses pydantic BaseSettings for environment variable management.
    """
    
    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017", env="MONGODB_URL")
    mongodb_database: str = Field(default="library", env="MONGODB_DATABASE")
    mongodb_collection: str = Field(default="books", env="MONGODB_COLLECTION")
    
    # Logging Configuration
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: str = Field(default="json", env="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, env="LOG_FILE")
    
    # Fuzzy Search Configuration
    search_max_results: int = Field(default=20, env="SEARCH_MAX_RESULTS")
    search_score_threshold: int = Field(default=-1000, env="SEARCH_SCORE_THRESHOLD")
    search_timeout_seconds: float = Field(default=5.0, env="SEARCH_TIMEOUT_SECONDS")
    
    # Development/Testing
    debug: bool = Field(default=False, env="DEBUG")
    
    @validator('search_max_results')
    def validate_max_results(cls, v):
        """Ensure the result cap is reasonable."""
        if v < 1 or v > 100:
            raise ValueError('search_max_results must be between 1 and 100')
        return v
    
    @validator('search_timeout_seconds')
    def validate_search_timeout(cls, v):
        """Ensure the search timeout is positive."""
        if v <= 0:
            raise ValueError('search_timeout_seconds must be positive')
        return v
    
    @validator('log_level')
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()
    
    @validator('log_format')
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()
    
    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env
    
    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None


# Global configuration instance
config = LibraryConfig()
