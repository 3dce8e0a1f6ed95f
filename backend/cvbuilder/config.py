import logging
import logging.handlers
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql://cvbuilder:cvbuilder@db:5432/cvbuilder"

    # Auth
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 12
    password_reset_ttl_minutes: int = 60
    expose_reset_token: bool = False
    admin_email: str = ""
    admin_password: str = ""
    admin_name: str = "Administrator"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    port_retry_attempts: int = 10
    cors_origins: str = "http://localhost:3000"
    cors_allow_credentials: bool = True
    trusted_hosts: str = "*"
    frontend_url: str = "http://localhost:3000"
    run_migrations: bool = True

    # Plans
    free_cv_limit: int = 2
    webhook_secret: str = ""

    # Rate limiting
    redis_url: str = ""
    rate_limit_enabled: bool = True
    rate_limit_auth: str = "20/minute"

    # SMTP
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    mail_from: str = ""

    # API client
    api_base_url: str = "http://localhost:5000/api"
    api_timeout: float = 15.0

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_max_bytes: int = 10_485_760  # 10 MB
    log_backup_count: int = 5

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def trusted_hosts_list(self) -> list[str]:
        return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()] or ["*"]


settings = Settings()


_CONSOLE_FORMAT = logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%H:%M:%S")
_FILE_FORMAT = logging.Formatter(
    "%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = (
    "uvicorn.access",
    "sqlalchemy.engine",
    "httpcore",
    "httpx",
    "fontTools",
    "weasyprint",
    "alembic.runtime.migration",
)


def _rotating_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(_FILE_FORMAT)
    return handler


def setup_logging() -> None:
    """Configure root logging for the API server.

    Console output is always on. With ``LOG_DIR`` set, ``app.log`` (all
    levels) and ``error.log`` (ERROR+) are written there and rotated at
    ``LOG_MAX_BYTES``. An empty ``LOG_DIR`` keeps logging console-only,
    which is what containers want.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(_CONSOLE_FORMAT)
    root.addHandler(console)

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        root.addHandler(_rotating_handler(log_dir / "app.log", logging.DEBUG))
        root.addHandler(_rotating_handler(log_dir / "error.log", logging.ERROR))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, files=%s",
        settings.log_level, settings.log_dir or "off",
    )
