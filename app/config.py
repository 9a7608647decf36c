from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Tenant Platform"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./tenant_platform.db"
    auto_create_tables: bool = True

    # Host resolution
    base_domain: str = "tenant.example.net"  # no protocol, no subdomain
    local_marker: str = "localhost"
    enable_debug_endpoint: bool = True

    # Tenant directory: "local" queries the database in-process,
    # "http" calls the internal lookup endpoint.
    tenant_directory_mode: str = "local"
    tenant_lookup_base_url: str = "http://127.0.0.1:8000"
    tenant_lookup_timeout_seconds: float = 2.0
    tenant_cache_ttl_seconds: float = 30.0  # 0 disables the cache
    tenant_cache_max_entries: int = 1024

    # Logging
    json_logs: bool = False
    log_level: str = "INFO"

    # CORS settings
    allowed_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
