from typing import Optional

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Loan Intake API"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./loan_intake.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Document blob store
    storage_root: str = "./storage/application-documents"
    public_storage_base_url: str = "http://localhost:3005/files"
    max_upload_bytes: int = 10 * 1024 * 1024

    # Company registry lookup (best-effort)
    companies_house_api_url: str = "https://api.company-information.service.gov.uk"
    companies_house_api_key: Optional[str] = None

    # Outbound lender notification webhook
    lender_webhook_url: Optional[str] = None
    http_timeout_seconds: float = 10.0

    allow_submissions_for_terminal_stages: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _is_sqlite: bool = PrivateAttr(default=False)
    _is_postgresql: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        _scheme = self.database_url.split(":")[0].lower()
        object.__setattr__(self, "_is_sqlite", "sqlite" in _scheme)
        object.__setattr__(self, "_is_postgresql", "postgresql" in _scheme)

    @property
    def is_sqlite(self) -> bool:
        return self._is_sqlite

    @property
    def is_postgresql(self) -> bool:
        return self._is_postgresql


settings = Settings()
