from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Notifier settings loaded from environment."""

    # Service
    service_name: str = "notifier"
    log_level: str = "INFO"

    # Dispatch
    max_retries: int = 3  # total attempts per delivery, first one included
    retry_base_delay_seconds: float = 1.0
    retry_max_delay_seconds: float = 60.0
    retry_jitter_ratio: float = 0.1
    send_timeout_seconds: float = 10.0
    enabled_channels: list[str] = ["email", "sms", "push"]

    # Templates
    templates_dir: str | None = None  # None uses the built-in templates

    # Result store
    store_backend: str = "memory"  # memory | sqlalchemy
    db_driver: str = "postgresql+asyncpg"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "notifier"
    db_user: str = "notifier"
    db_password: str = ""

    @property
    def database_url(self) -> str:
        if self.db_driver.startswith("sqlite"):
            return f"{self.db_driver}:///{self.db_name}"
        return f"{self.db_driver}://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    class Config:
        env_prefix = "notifier_"
        env_file = ".env"
        case_sensitive = False


settings = Settings()
