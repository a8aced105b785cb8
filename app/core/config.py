from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./mallbook.db"
    project_name: str = "MallBook API"
    api_v1_prefix: str = "/api/v1"

    # Supabase authentication configuration
    # SUPABASE_URL: Full Supabase project URL (e.g., https://xxx.supabase.co)
    #   Used to derive JWKS URL and issuer for JWT verification
    supabase_url: str = "http://localhost:54321"

    # SUPABASE_JWT_AUDIENCE: JWT audience claim to validate (default: "authenticated")
    supabase_jwt_audience: str = "authenticated"

    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = "INFO"

    # strftime pattern for the long date in booking notifications (en-ZA style)
    booking_date_format: str = "%A, %d %B %Y"
    message_max_length: int = 4000

    @property
    def supabase_jwks_url(self) -> str:
        """Derive JWKS URL from Supabase URL."""
        return f"{self.supabase_url.rstrip('/')}/auth/v1/.well-known/jwks.json"

    @property
    def supabase_issuer(self) -> str:
        """Derive issuer from Supabase URL."""
        return f"{self.supabase_url.rstrip('/')}/auth/v1"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
