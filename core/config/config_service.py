"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Optional, Tuple

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "core").is_dir():
            return parent
    return here.parent

PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "core" / "config"
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
MACHINE_INI = CONFIG_DIR / "config.ini"

ENV_PREFIX = "PDFSIGNER_"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Api": {
        "base_url": "",
        "timeout_seconds": "30",
    },
    "Logging": {
        "event_db": (PROJECT_ROOT / "databases" / "signing-events.db").as_posix(),
        "level": "INFO",
    },
    "Placement": {
        "signature_width": "130",
        "signature_height": "65",
        "date_format": "%m/%d/%Y",
        "fixed_coordinate_mode": "points",
        "template_coordinate_mode": "percent",
        "enable_undo": "true",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class ApiConfig:
    base_url: str = ""
    timeout_seconds: float = 30.0


@dataclass
class LoggingConfig:
    event_db: Path = PROJECT_ROOT / "databases" / "signing-events.db"
    level: str = "INFO"


@dataclass
class PlacementConfig:
    signature_width: float = 130.0
    signature_height: float = 65.0
    date_format: str = "%m/%d/%Y"
    fixed_coordinate_mode: str = "points"
    template_coordinate_mode: str = "percent"
    enable_undo: bool = True


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section, raw=True)}
    return data


def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    # Interpolation off: date formats contain '%'.
    cp = configparser.ConfigParser(interpolation=None)
    cp.read(path, encoding="utf-8")
    return _cp_to_dict(cp)


def _apply(target: Dict[str, Dict[str, Any]], source: Dict[str, Dict[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: Any) -> Any:
    if typ in (Path, "Path"):
        return Path(str(value)).expanduser()
    if typ in (bool, "bool"):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ in (int, "int"):
        return int(value)
    if typ in (float, "float"):
        return float(value)
    return str(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, field.type)
    return cls(**kwargs)


def _env_overlays(environ: Optional[Dict[str, str]] = None) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in (environ if environ is not None else os.environ).items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


def _user_config_path() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "PdfSigner" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "pdfsigner" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety.

    Precedence (lowest first): embedded defaults, defaults.ini, environment
    (``PDFSIGNER_<SECTION>__<KEY>``), machine config.ini, user config.ini.
    """

    def __init__(
        self,
        *,
        defaults_ini: Path = DEFAULTS_INI,
        machine_ini: Path = MACHINE_INI,
        user_ini: Optional[Path] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> None:
        self._lock = RLock()
        self._defaults_ini = Path(defaults_ini)
        self._machine_ini = Path(machine_ini)
        self._user_ini = Path(user_ini) if user_ini is not None else _user_config_path()
        self._environ = environ
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if self._defaults_ini.exists():
                _apply(merged, _read_ini(self._defaults_ini), "defaults.ini", str(self._defaults_ini), sources)

            # Layer 2: environment variables
            env = _env_overlays(self._environ)
            _apply(merged, env, "env", "os.environ", sources)

            # Layer 3: machine config
            if self._machine_ini.exists():
                _apply(merged, _read_ini(self._machine_ini), "machine", str(self._machine_ini), sources)

            # Layer 4: user overrides
            if self._user_ini.exists():
                _apply(merged, _read_ini(self._user_ini), "user", str(self._user_ini), sources)

            self._merged = merged
            self._sources = sources

            self.api = _build_dataclass(ApiConfig, merged.get("Api", {}))
            self.logging = _build_dataclass(LoggingConfig, merged.get("Logging", {}))
            self.placement = _build_dataclass(PlacementConfig, merged.get("Placement", {}))

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))


_service: Optional[ConfigService] = None
_service_lock = RLock()


def get_config_service() -> ConfigService:
    """Lazily created process-wide instance."""
    global _service
    with _service_lock:
        if _service is None:
            _service = ConfigService()
        return _service
