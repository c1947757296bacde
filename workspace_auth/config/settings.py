from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for the rpc functions when RLS is enabled

    # Session tokens and cookies
    jwt_secret_key: str = ""
    jwt_maxage: int = 60 * 60  # seconds; also the max-age of the token/workspace cookies
    cookie_secure: bool = False
    cookie_samesite: str = "lax"  # lax | strict | none

    # Account emails (verification, password reset, email change)
    backend_base_url: str = "http://localhost:8000"
    frontend_base_url: str = "http://localhost:3000"
    account_token_ttl_hours: int = 24

    # App
    app_name: str = "workspace-auth"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    rate_limit: str = "100/minute"  # slowapi format

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def secure_cookies(self) -> bool:
        return self.cookie_secure or self.is_production

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
