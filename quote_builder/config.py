"""Configuration settings for the quote builder."""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""
    app_env: str = "development"
    log_level: str = "INFO"
    db_url: str = "sqlite:///./quotes.db"
    history_key: str = "gvws_quotes"
    quote_title: str = "GVWS Sales Quote"
    pdf_filename: str = "gvws-quote.pdf"
    currency_symbol: str = "$"
    cors_origins: List[str] = ["http://localhost:8001", "http://127.0.0.1:8001"]
    
    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
