from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple
import os
import json
import pathlib
import logging

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    printer_host: str = ""
    printer_port: int = 9100
    connect_timeout: float = 5.0
    write_timeout: float = 3.0
    printer_profile: str = ""
    font_path: str = ""
    font_size: int = 40
    web_host: str = "127.0.0.1"
    web_port: int = 54873
    log_level: str = "WARNING"
    secret_key: str = ""


# Settings field -> environment variable
_ENV_KEYS: Dict[str, str] = {
    "printer_host": "TP_PRINTER_HOST",
    "printer_port": "TP_PRINTER_PORT",
    "connect_timeout": "TP_CONNECT_TIMEOUT",
    "write_timeout": "TP_WRITE_TIMEOUT",
    "printer_profile": "TP_PRINTER_PROFILE",
    "font_path": "TP_FONT_PATH",
    "font_size": "TP_FONT_SIZE",
    "web_host": "TP_WEB_HOST",
    "web_port": "TP_WEB_PORT",
    "log_level": "TP_LOG_LEVEL",
    "secret_key": "TP_SECRET_KEY",
}


def _parse_env_line(line: str) -> Optional[Tuple[str, str]]:
    """Split one dotenv line into (name, value), or None for blanks and comments."""
    body = line.strip()
    if body.startswith("export "):
        body = body[len("export "):]
    name, sep, value = body.partition("=")
    name = name.strip()
    if not sep or not name.isidentifier():
        return None
    value = value.strip()
    quote = value[:1]
    if quote in ("'", '"') and len(value) > 1 and value.endswith(quote):
        return name, value[1:-1]
    # Unquoted values may carry a trailing " # note"
    return name, value.split(" #", 1)[0].rstrip()


def _env_file_candidates() -> list:
    candidates = []
    # Explicit path wins
    explicit = os.getenv("TP_ENV_PATH")
    if isinstance(explicit, str) and explicit.strip():
        candidates.append(explicit.strip())

    repo_root = pathlib.Path(__file__).resolve().parent.parent.parent
    candidates.extend([
        str(repo_root / ".env"),
        str(repo_root / ".env.local"),
        str(pathlib.Path.cwd() / ".env"),
        str(pathlib.Path.cwd() / ".env.local"),
    ])

    if os.name == "nt":
        appdata = os.getenv("APPDATA", "")
        if appdata:
            candidates.append(os.path.join(appdata, "ticketprint", "env"))
    else:
        candidates.append("/etc/ticketprint/env")
    return candidates


def load_env_from_files(override: bool = False) -> None:
    """Copy settings from every dotenv file found into os.environ, earliest file first.

    Variables that are already set win unless ``override`` is true.
    """
    for path in _env_file_candidates():
        if not path or not os.path.exists(path):
            continue
        loaded_any = False
        try:
            with open(path, "r", encoding="utf-8") as fh:
                for line in fh:
                    parsed = _parse_env_line(line)
                    if not parsed:
                        continue
                    key, value = parsed
                    if override or not os.getenv(key):
                        os.environ[key] = value
                        loaded_any = True
        except OSError as e:
            logger.debug(f"Failed to load env file {path}: {e}")
            continue
        if loaded_any:
            logger.info(f"Loaded environment from: {path}")


def get_config_path() -> str:
    env_path = os.getenv("TP_CONFIG_PATH")
    if isinstance(env_path, str) and env_path.strip():
        return os.path.expanduser(env_path.strip())
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = os.path.expanduser(xdg.strip()) if isinstance(xdg, str) and xdg.strip() else os.path.expanduser("~/.config")
    return os.path.join(base, "ticketprint", "config.json")


def _read_json_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a JSON object")
        return {}
    return {str(k): v for k, v in data.items()}


def _write_json_file(path: str, data: Dict[str, Any]) -> None:
    directory = os.path.dirname(path)
    if directory:
        pathlib.Path(directory).mkdir(parents=True, exist_ok=True)
    tmp_path = path + ".tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except Exception:
        # Clean up temporary file if it exists
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _coerce(name: str, value: Any, default: Any) -> Any:
    try:
        if isinstance(default, bool):
            return str(value).strip().lower() in {"1", "true", "yes", "on"}
        if isinstance(default, int):
            return int(str(value).strip())
        if isinstance(default, float):
            return float(str(value).strip())
    except (TypeError, ValueError):
        logger.warning(f"Invalid value for {name}: {value!r}. Using default {default!r}.")
        return default
    return str(value).strip()


def load_config(path: Optional[str] = None) -> Settings:
    """Return settings from the JSON config file, with environment overrides.

    Priority: environment variables > config file > defaults.
    """
    load_env_from_files(override=False)
    path = path or get_config_path()
    file_cfg = _read_json_file(path)

    defaults = Settings()
    values: Dict[str, Any] = {}
    for name, env_key in _ENV_KEYS.items():
        default = getattr(defaults, name)
        raw = os.getenv(env_key)
        if isinstance(raw, str) and raw.strip():
            values[name] = _coerce(env_key, raw, default)
        elif name in file_cfg and file_cfg[name] is not None:
            values[name] = _coerce(name, file_cfg[name], default)

    settings = Settings(**values)
    if settings.connect_timeout <= 0:
        logger.warning(f"Connect timeout must be positive. Using default {defaults.connect_timeout}.")
        settings.connect_timeout = defaults.connect_timeout
    if settings.write_timeout <= 0:
        logger.warning(f"Write timeout must be positive. Using default {defaults.write_timeout}.")
        settings.write_timeout = defaults.write_timeout
    return settings


def save_settings(settings: Settings, path: Optional[str] = None) -> str:
    path = path or get_config_path()
    _write_json_file(path, asdict(settings))
    return path
