from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite:///./lims.db"
    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    api_base_url: str = "http://localhost:8000"
    allowed_origins: str = "http://localhost:8501"
    default_branch_id: str = "main"
    catalog_search_threshold: int = 70
    catalog_search_limit: int = 20
    seed_demo_catalog: bool = True


settings = Settings()
