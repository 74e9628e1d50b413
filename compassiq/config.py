from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    supabase_url: str
    supabase_service_role_key: str
    supabase_jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"
    environment: str = "development"  # development | production
    session_cookie_name: str = "sb-access-token"
    org_cookie_name: str = "compass-org-id"
    org_cookie_path: str = "/"
    org_cookie_max_age_seconds: int = 60 * 60 * 24 * 30
    preview_cookie_name: str = "preview-workspace-id"
    preview_cookie_path: str = "/"
    preview_ttl_seconds: int = 60 * 60 * 24 * 7
    app_base_path: str = "/app"
    cors_allow_origins: list[str] = ["http://localhost:3000"]
    demo_org_id: str | None = None
    dev_demo_mode: bool = False
    fallback_to_first_membership: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def dev_demo_enabled(self) -> bool:
        # Never in production, whatever the flag says.
        return self.dev_demo_mode and not self.is_production


settings = Settings()
