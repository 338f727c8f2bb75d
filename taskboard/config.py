from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    base_url: str = "http://localhost:8000"
    database_url: str = "postgresql+psycopg://app:app@db:5432/app"
    redis_url: str = "redis://redis:6379/0"
    redis_timeout_seconds: float = 2.0

    jwt_secret: str = "dev-secret-change-me"
    jwt_issuer: str = "taskboard"
    jwt_audience: str = "taskboard"
    jwt_expires_minutes: int = 60

    # email confirmation + password recovery links
    auth_token_pepper: str = "dev-pepper-change-me"
    confirm_token_expires_minutes: int = 60 * 24
    recovery_token_expires_minutes: int = 60
    auto_confirm_email: bool = False
    password_min_length: int = 8
    password_hash_iterations: int = 390_000

    # session cookie + route protection
    session_cookie_name: str = "tb-access-token"
    protected_prefixes: list[str] = ["/dashboard", "/tasks", "/profile"]
    login_path: str = "/auth/login"

    # persistence: "sql" | "redis" | "memory"
    storage_backend: str = "sql"
    tasks_storage_key: str = "task-manager-tasks"
    identity_storage_key: str = "task-manager-user"

    # realtime: "local" | "redis"
    realtime_backend: str = "local"
    realtime_channel: str = "task-manager"
    notifications_limit: int = 10

    # rate limiting (redis)
    rate_limit_enabled: bool = True
    rate_limit_auth_sign_in_per_min: int = 20
    rate_limit_auth_sign_up_per_min: int = 10
    rate_limit_auth_reset_per_min: int = 5

    log_level: str = "INFO"
    log_dir: str | None = None

settings = Settings()
