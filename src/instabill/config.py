from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping
import os
import sys

from instabill.domain.errors import ValidationError
from instabill.domain.pricing import BUDGET_EPSILON, TAX_RATE


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path
    exports_dir: Path


@dataclass(frozen=True)
class Settings:
    tax_rate: float = TAX_RATE
    budget_epsilon: float = BUDGET_EPSILON
    dedup_window_seconds: float = 3.0
    require_budget_before_scan: bool = True
    default_admin_pin: str = "1234"
    identification_urls: tuple[str, ...] = field(default_factory=tuple)
    identification_timeout: float = 10.0
    currency_symbol: str = "₹"
    payment_delay_seconds: float = 0.0


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "InstaBill") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    exports = base / "exports"
    db = base / "instabill.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)
    exports.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs, exports_dir=exports)


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValidationError(f"{key} must be a number. Received: {raw!r}") from e
    if value < 0:
        raise ValidationError(f"{key} must be >= 0.")
    return value


def _bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    defaults = Settings()

    urls = tuple(u.strip() for u in env.get("INSTABILL_IDENTIFY_URLS", "").split(",") if u.strip())
    pin = env.get("INSTABILL_ADMIN_PIN", "").strip() or defaults.default_admin_pin

    return Settings(
        tax_rate=_float(env, "INSTABILL_TAX_RATE", defaults.tax_rate),
        budget_epsilon=_float(env, "INSTABILL_BUDGET_EPSILON", defaults.budget_epsilon),
        dedup_window_seconds=_float(env, "INSTABILL_DEDUP_WINDOW", defaults.dedup_window_seconds),
        require_budget_before_scan=_bool(env, "INSTABILL_REQUIRE_BUDGET", defaults.require_budget_before_scan),
        default_admin_pin=pin,
        identification_urls=urls,
        identification_timeout=_float(env, "INSTABILL_IDENTIFY_TIMEOUT", defaults.identification_timeout),
        payment_delay_seconds=_float(env, "INSTABILL_PAYMENT_DELAY", defaults.payment_delay_seconds),
    )
