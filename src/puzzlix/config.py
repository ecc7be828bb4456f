from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import MISSING, dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_MISSING = object()
_SETTINGS_ALIAS_FIELDS = (
    "glicko_tau",
    "glicko_min_deviation",
    "glicko_max_deviation",
    "glicko_max_volatility",
    "glicko_max_volatility_change",
    "glicko_rating_period_days",
    "glicko_convergence_tolerance",
)

load_dotenv()

DEFAULT_DATA_DIR = Path(os.getenv("PUZZLIX_DATA_DIR", "data"))
DEFAULT_RATING_VALUE = 1500.0
DEFAULT_RATING_DEVIATION = 350.0
DEFAULT_RATING_VOLATILITY = 0.06


def _field_value(name: str, field_info: object, kwargs: dict[str, object]) -> object:
    value = kwargs.pop(name, _MISSING)
    if value is not _MISSING:
        return value
    default_factory = getattr(field_info, "default_factory", MISSING)
    if default_factory is not MISSING:
        return default_factory()
    default = getattr(field_info, "default", MISSING)
    if default is not MISSING:
        return default
    raise TypeError(f"Missing required argument: {name}")


def _apply_settings_aliases(settings: Settings, kwargs: dict[str, object]) -> None:
    for alias in _SETTINGS_ALIAS_FIELDS:
        value = kwargs.pop(alias, _MISSING)
        if value is not _MISSING:
            setattr(settings, alias, value)


def _raise_on_unexpected_kwargs(kwargs: dict[str, object]) -> None:
    if kwargs:
        unexpected = next(iter(kwargs))
        raise TypeError(f"Settings.__init__() got an unexpected keyword argument '{unexpected}'")


@dataclass(slots=True)
class GlickoSettings:
    """Glicko-2 system constants and numeric bounds."""

    tau: float = float(os.getenv("PUZZLIX_GLICKO_TAU", "0.75"))
    min_deviation: float = float(os.getenv("PUZZLIX_GLICKO_MIN_DEVIATION", "45"))
    max_deviation: float = float(
        os.getenv("PUZZLIX_GLICKO_MAX_DEVIATION", str(DEFAULT_RATING_DEVIATION))
    )
    max_volatility: float = float(os.getenv("PUZZLIX_GLICKO_MAX_VOLATILITY", "0.1"))
    max_volatility_change: float = float(
        os.getenv("PUZZLIX_GLICKO_MAX_VOLATILITY_CHANGE", "0.02")
    )
    rating_period_days: float = float(os.getenv("PUZZLIX_GLICKO_RATING_PERIOD_DAYS", "1.0"))
    convergence_tolerance: float = float(
        os.getenv("PUZZLIX_GLICKO_CONVERGENCE_TOLERANCE", "0.000001")
    )


@dataclass(slots=True, init=False)
class Settings:
    """Central configuration for the training API, storage and ratings."""

    api_token: str = os.getenv("PUZZLIX_API_TOKEN", "local-dev-token")
    duckdb_path: Path = Path(
        os.getenv("PUZZLIX_DUCKDB_PATH", DEFAULT_DATA_DIR / "puzzlix.duckdb")
    )
    id_max_attempts: int = int(os.getenv("PUZZLIX_ID_MAX_ATTEMPTS", "5"))
    host: str = os.getenv("PUZZLIX_HOST", "127.0.0.1")
    port: int = int(os.getenv("PUZZLIX_PORT", "8000"))
    log_level: str = os.getenv("PUZZLIX_LOG_LEVEL", "INFO")
    glicko: GlickoSettings = field(default_factory=GlickoSettings)

    def __init__(self, **kwargs: object) -> None:
        for name, field_info in self.__dataclass_fields__.items():
            setattr(self, name, _field_value(name, field_info, kwargs))
        _apply_settings_aliases(self, kwargs)
        _raise_on_unexpected_kwargs(kwargs)

    @property
    def glicko_tau(self) -> float:
        return self.glicko.tau

    @glicko_tau.setter
    def glicko_tau(self, value: float) -> None:
        self.glicko.tau = value

    @property
    def glicko_min_deviation(self) -> float:
        return self.glicko.min_deviation

    @glicko_min_deviation.setter
    def glicko_min_deviation(self, value: float) -> None:
        self.glicko.min_deviation = value

    @property
    def glicko_max_deviation(self) -> float:
        return self.glicko.max_deviation

    @glicko_max_deviation.setter
    def glicko_max_deviation(self, value: float) -> None:
        self.glicko.max_deviation = value

    @property
    def glicko_max_volatility(self) -> float:
        return self.glicko.max_volatility

    @glicko_max_volatility.setter
    def glicko_max_volatility(self, value: float) -> None:
        self.glicko.max_volatility = value

    @property
    def glicko_max_volatility_change(self) -> float:
        return self.glicko.max_volatility_change

    @glicko_max_volatility_change.setter
    def glicko_max_volatility_change(self, value: float) -> None:
        self.glicko.max_volatility_change = value

    @property
    def glicko_rating_period_days(self) -> float:
        return self.glicko.rating_period_days

    @glicko_rating_period_days.setter
    def glicko_rating_period_days(self, value: float) -> None:
        self.glicko.rating_period_days = value

    @property
    def glicko_convergence_tolerance(self) -> float:
        return self.glicko.convergence_tolerance

    @glicko_convergence_tolerance.setter
    def glicko_convergence_tolerance(self, value: float) -> None:
        self.glicko.convergence_tolerance = value

    @property
    def data_dir(self) -> Path:
        return self.duckdb_path.parent

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)


_ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], object]]] = {
    "api_token": ("PUZZLIX_API_TOKEN", str),
    "duckdb_path": ("PUZZLIX_DUCKDB_PATH", Path),
    "host": ("PUZZLIX_HOST", str),
    "port": ("PUZZLIX_PORT", int),
    "log_level": ("PUZZLIX_LOG_LEVEL", str),
}


def _apply_env_overrides(settings: Settings, overrides: dict[str, object]) -> None:
    for name, (env_name, convert) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw and name not in overrides:
            setattr(settings, name, convert(raw))


def get_settings(**overrides: object) -> Settings:
    load_dotenv()
    settings = Settings(**overrides)
    _apply_env_overrides(settings, overrides)
    settings.ensure_dirs()
    return settings
