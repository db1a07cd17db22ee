"""
Configuration management for the product performance dashboard
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Product Performance Dashboard"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = "logs"

    # API
    api_host: str = "localhost"
    api_port: int = 5000
    cors_origins: List[str] = ["http://localhost:3001"]

    # Database
    database_url: str = "postgresql://localhost:5432/dashboard"
    db_pool_size: int = 20  # Max concurrent connections (pool + overflow)
    db_pool_timeout: float = 2.0  # Seconds to wait for a free connection
    db_pool_recycle: int = 30  # Seconds before an idle connection is replaced
    auto_create_tables: bool = False  # Dev/test only, schema is owned upstream

    # Data scope
    channel: str = "SHP"
    named_brands: List[str] = ["Birkenstock", "Rieker", "Lunar", "Crocs", "Hotter", "Skechers"]
    catch_all_brand: str = "UKD"

    # Product details
    weekly_history_limit: int = 12
    default_price_page_size: int = 10
    max_price_page_size: int = 100
    default_sales_limit: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
