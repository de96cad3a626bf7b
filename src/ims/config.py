"""Runtime settings, read from ``IMS_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from ims.domain.exceptions import ValidationError
from ims.domain.model.value_objects import TaxRate


def _default_data_dir() -> Path:
    return Path.cwd() / "data"


@dataclass(frozen=True)
class Settings:
    data_dir: Path = field(default_factory=_default_data_dir)
    database_url: str | None = None
    low_stock_threshold: int = 10
    default_tax_rate: TaxRate = TaxRate(Decimal("0.12"))
    number_max_attempts: int = 5
    fulfill_max_attempts: int = 3
    log_level: str = "WARNING"
    log_file: Path | None = None

    @property
    def uses_database(self) -> bool:
        return bool(self.database_url)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        log_file = env.get("IMS_LOG_FILE")
        return cls(
            data_dir=Path(env.get("IMS_DATA_DIR") or _default_data_dir()),
            database_url=env.get("IMS_DATABASE_URL") or None,
            low_stock_threshold=_int(env, "IMS_LOW_STOCK_THRESHOLD", 10, minimum=0),
            default_tax_rate=TaxRate.of(env.get("IMS_DEFAULT_TAX_RATE", "0.12")),
            number_max_attempts=_int(env, "IMS_NUMBER_MAX_ATTEMPTS", 5, minimum=1),
            fulfill_max_attempts=_int(env, "IMS_FULFILL_MAX_ATTEMPTS", 3, minimum=1),
            log_level=env.get("IMS_LOG_LEVEL", "WARNING").upper(),
            log_file=Path(log_file) if log_file else None,
        )


def _int(env, name: str, default: int, minimum: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ValidationError(f"{name} must be at least {minimum}, got {value}")
    return value
