from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from typing import Optional

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Entity Collection Taxonomy"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./ectaxonomy.db"

    # JSON option files (plugin state, taxonomy registry record)
    data_dir: str = "data"

    # Shared secret for admin routes; admin routes are open when unset
    admin_token: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
