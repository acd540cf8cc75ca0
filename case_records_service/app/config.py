# Application Configuration using Pydantic BaseSettings
from pydantic_settings import BaseSettings
from typing import Optional

class AppSettings(BaseSettings):
    # MongoDB (local durable record store)
    MONGO_DETAILS: str = "mongodb://mongo:27017"
    DB_NAME: str = "case_records_db"
    RECORDS_COLLECTION: str = "records"

    # Remote records API. Disabled by default: all reads and writes stay local.
    REMOTE_API_ENABLED: bool = False
    REMOTE_API_URL: Optional[str] = None # e.g., https://api.example.com/v1
    REMOTE_API_TOKEN: Optional[str] = None
    REMOTE_API_TIMEOUT_SECONDS: float = 5.0

    # External document source (document management system)
    DOCUMENT_SOURCE_URL: Optional[str] = None
    DOCUMENT_SOURCE_TOKEN: Optional[str] = None
    DOCUMENT_SOURCE_TIMEOUT_SECONDS: float = 5.0

    # Conversation context handed to text generators
    DEFAULT_CONTEXT_MESSAGES: int = 10

    # Observability
    LOG_LEVEL: str = "INFO"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_METRICS_ENDPOINT: Optional[str] = None
    SERVICE_NAME_API: str = "case-records-api"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

# Instantiate settings to be imported by other modules
settings = AppSettings()

import logging
logger = logging.getLogger(__name__)
# Tokens are settings too, so the settings dump is never logged.
logger.info("Application settings module initialized.")
