# prodtrack/config.py
import logging
import os
from decimal import Decimal


def _env_bool(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or default).strip().lower() == "true"


class Settings:
    """
    Process-wide knobs for prodtrack: database, session signing, logging,
    forming margin, page sizes and the platform bootstrap account.
    Per-company rules live in ``CompanySettings`` instead.
    """

    def __init__(self) -> None:
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite:///./prodtrack.db")
        self.secret_key: str = os.getenv("SECRET_KEY", "change-me-prodtrack-dev-key")
        self.session_max_age: int = int(os.getenv("SESSION_MAX_AGE", str(12 * 3600)))

        self.debug: bool = _env_bool("DEBUG")
        self.log_level: str = (os.getenv("LOG_LEVEL") or ("DEBUG" if self.debug else "INFO")).upper()
        self.log_body: bool = _env_bool("LOG_BODY", "true")

        # forming qty = ordered * (1 + margin)
        self.forming_margin: Decimal = Decimal(os.getenv("FORMING_MARGIN", "0.15"))
        self.default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
        self.default_list_limit: int = int(os.getenv("DEFAULT_LIST_LIMIT", "50"))

        self.superadmin_username: str = os.getenv("SUPERADMIN_USERNAME", "superadmin")
        self.superadmin_password: str = os.getenv("SUPERADMIN_PASSWORD", "superadmin123")
        self.bootstrap_company_code: str = os.getenv("BOOTSTRAP_COMPANY_CODE", "PLATFORM")


settings = Settings()


def setup_logging() -> None:
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("prodtrack").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)
