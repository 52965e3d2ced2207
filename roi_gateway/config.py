"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Invoicing platform
    invoicing_base_url: str = "http://localhost:8001"
    invoicing_api_token: str = ""
    payments_server_side_filter: bool = True

    # Catalog files
    pricebook_path: str = "./data/pricebook.json"
    benefits_path: str = "./data/benefits.json"
    plan_rules_path: str = "./data/plan_rules.json"

    # Service
    service_name: str = "roi-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 30.0
    page_size: int = 50
    client_search_page_size: int = 50
    products_page_size: int = 100
    max_pages: int = 20

    # Report shape
    roi_record_limit: int = 12
    roi_months_back: int = 12
    recent_items: int = 6


settings = Settings()
