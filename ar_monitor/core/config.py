"""
Configuration management for the open-data change monitor.
"""

from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


REPORT_FILENAME = "change-report.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Portal
    portal_url: str = Field(
        "https://www.parlamento.pt/Cidadania/paginas/dadosabertos.aspx",
        alias="AR_PORTAL_URL",
    )

    # Browser automation
    browser: str = Field("firefox", alias="AR_BROWSER")
    headless: bool = Field(True, alias="AR_HEADLESS")
    wait_until: str = Field("networkidle", alias="AR_WAIT_UNTIL")
    navigation_timeout_ms: int = Field(30000, alias="AR_NAVIGATION_TIMEOUT_MS")
    settle_delay_ms: int = Field(2000, alias="AR_SETTLE_DELAY_MS")

    # Directory paths
    data_dir: str = Field("data", alias="AR_DATA_DIR")

    # Logging
    log_level: str = Field("INFO", alias="AR_LOG_LEVEL")
    log_format: str = Field("json", alias="AR_LOG_FORMAT")

    @field_validator("browser")
    @classmethod
    def _known_browser(cls, value: str) -> str:
        value = value.lower()
        if value not in ("firefox", "chromium", "webkit"):
            raise ValueError(f"Unsupported browser: {value}")
        return value


class RunConfig(BaseModel):
    """Everything a single traversal run needs, passed explicitly to the monitor."""

    data_dir: Path = Field(default_factory=lambda: Path(settings.data_dir))
    resource_names: List[str] = Field(default_factory=list)
    legislature_filter: List[str] = Field(default_factory=list)
    current_only: bool = False

    @field_validator("legislature_filter")
    @classmethod
    def _normalize_terms(cls, value: List[str]) -> List[str]:
        return [term.strip().upper() for term in value if term.strip()]

    @model_validator(mode="after")
    def _exclusive_term_selection(self) -> "RunConfig":
        if self.current_only and self.legislature_filter:
            raise ValueError(
                "current legislature only is incompatible with an explicit legislature filter"
            )
        return self

    @property
    def report_path(self) -> Path:
        """Location of the change report for this run."""
        return self.data_dir / REPORT_FILENAME

    @property
    def legacy_digest_path(self) -> Path:
        """Digest file used by single-selector lookups."""
        return self.data_dir / "xml_hash.txt"


def parse_legislature_filter(raw: Optional[str]) -> List[str]:
    """Split a comma-separated list of Roman numerals (e.g. ``"xv, XVI"``)."""
    if not raw:
        return []
    return [term.strip().upper() for term in raw.split(",") if term.strip()]


# Global settings instance
settings = Settings()
