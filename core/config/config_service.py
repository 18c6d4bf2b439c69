"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Optional, Tuple

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

ENV_PREFIX = "NOMEX_"


class ConfigError(ValueError):
    """Raised when a configuration value or file cannot be used."""


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Search": {
        "extension": "psm",
    },
    "Properties": {
        "section": "Custom",
        "prefix": "NOMEX_LAYERS",
    },
    "Automation": {
        "prog_id": "SolidEdge.Application",
        "file_properties_prog_id": "SolidEdge.FileProperties",
        "hide_running_instance": "false",
        "quit_launched_instance": "true",
    },
    "Retry": {
        "retry_delay_ms": "99",
        "max_retry_window_ms": "0",
    },
    "Logging": {
        "level": "INFO",
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class SearchConfig:
    extension: str = "psm"


@dataclass
class PropertiesConfig:
    section: str = "Custom"
    prefix: str = "NOMEX_LAYERS"


@dataclass
class AutomationConfig:
    prog_id: str = "SolidEdge.Application"
    file_properties_prog_id: str = "SolidEdge.FileProperties"
    hide_running_instance: bool = False
    quit_launched_instance: bool = True


@dataclass
class RetryConfig:
    retry_delay_ms: int = 99
    max_retry_window_ms: int = 0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    # interpolation off: logging format strings contain '%'
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
    # annotations are strings under `from __future__ import annotations`
    name = typ if isinstance(typ, str) else getattr(typ, "__name__", str(typ))
    if name == "Path":
        return Path(str(value)).expanduser()
    if name == "bool":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if name == "int":
        return int(value)
    if name == "float":
        return float(value)
    return str(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        try:
            kwargs[field.name] = _cast(val, field.type)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value {val!r} for {cls.__name__}.{field.name}") from exc
    return cls(**kwargs)


def _env_overlays(environ: Optional[Dict[str, str]] = None) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in (os.environ if environ is None else environ).items():
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
        return Path(appdata) / "NomexLayers" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "nomex-layers" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety."""

    def __init__(
        self,
        *,
        extra_ini: Optional[Path] = None,
        environ: Optional[Dict[str, str]] = None,
        defaults_ini: Path = DEFAULTS_INI,
        machine_ini: Path = MACHINE_INI,
        user_ini: Optional[Path] = None,
    ) -> None:
        self._lock = RLock()
        self._extra_ini = extra_ini
        self._environ = environ
        self._defaults_ini = defaults_ini
        self._machine_ini = machine_ini
        self._user_ini = user_ini
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
            _apply(merged, _env_overlays(self._environ), "env", "os.environ", sources)

            # Layer 3: machine config
            if self._machine_ini.exists():
                _apply(merged, _read_ini(self._machine_ini), "machine", str(self._machine_ini), sources)

            # Layer 4: user overrides
            user_ini = self._user_ini or _user_config_path()
            if user_ini.exists():
                _apply(merged, _read_ini(user_ini), "user", str(user_ini), sources)

            # Layer 5: file given on the command line
            if self._extra_ini is not None:
                if not self._extra_ini.exists():
                    raise ConfigError(f"Config file not found: {self._extra_ini}")
                _apply(merged, _read_ini(self._extra_ini), "cli", str(self._extra_ini), sources)

            self._sources = sources

            self.search = _build_dataclass(SearchConfig, merged.get("Search", {}))
            self.properties = _build_dataclass(PropertiesConfig, merged.get("Properties", {}))
            self.automation = _build_dataclass(AutomationConfig, merged.get("Automation", {}))
            self.retry = _build_dataclass(RetryConfig, merged.get("Retry", {}))
            self.logging = _build_dataclass(LoggingConfig, merged.get("Logging", {}))

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))

