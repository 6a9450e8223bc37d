"""Configuration loading and JSON-ish preprocessing."""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from .errors import PorterError, format_field_error
from .paths import get_config_path, get_store_dir

DEFAULT_MAX_RETRIES = 5
DEFAULT_RETRY_DELAY = 5.0
LOG_FILE_NAME = "package_porter.log"


class ConfigError(PorterError):
    """Raised when config loading or parsing fails.

    Syntax errors carry the line number, column and a caret under the
    offending character.
    """


@dataclass
class PorterConfig:
    """Settings shared by the build and install phases."""

    store_dir: Path = field(default_factory=get_store_dir)
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    log_file: Path | None = None
    recover_failed: bool = True
    final_upgrade: bool = True

    def __post_init__(self):
        self.store_dir = Path(self.store_dir)
        if self.log_file is not None:
            self.log_file = Path(self.log_file)

        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise ValueError(
                format_field_error("Config", "max_retries", "must be an integer")
            )
        if self.max_retries < 1:
            raise ValueError(
                format_field_error("Config", "max_retries", "must be at least 1")
            )
        if isinstance(self.retry_delay, bool) or not isinstance(
            self.retry_delay, (int, float)
        ):
            raise ValueError(
                format_field_error("Config", "retry_delay", "must be a number")
            )
        if self.retry_delay < 0:
            raise ValueError(
                format_field_error("Config", "retry_delay", "must not be negative")
            )
        for flag in ("recover_failed", "final_upgrade"):
            if not isinstance(getattr(self, flag), bool):
                raise ValueError(format_field_error("Config", flag, "must be a boolean"))

    @property
    def effective_log_file(self) -> Path:
        return self.log_file or self.store_dir / LOG_FILE_NAME


def validate_config(data: dict) -> PorterConfig:
    """Validate and convert a raw dict to PorterConfig.

    Unknown keys are rejected so that typos do not silently fall back to
    defaults.

    Raises:
        ConfigError: If validation fails
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be an object, got {type(data).__name__}")

    known = {f.name for f in fields(PorterConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config field(s): {', '.join(unknown)}")

    for path_field in ("store_dir", "log_file"):
        value = data.get(path_field)
        if value is not None and not isinstance(value, str):
            raise ConfigError(
                format_field_error("Config", path_field, "must be a string or null")
            )

    kwargs = {k: v for k, v in data.items() if v is not None}
    try:
        return PorterConfig(**kwargs)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def preprocess_jsonish(text: str) -> str:
    """Turn JSON-ish text into strict JSON.

    `//` line comments and trailing commas before `]` or `}` are replaced by
    spaces so that line/column positions in error messages still match the
    original text. String contents (including escaped quotes) are untouched.
    """
    out = list(text)
    n = len(text)
    i = 0
    in_string = False
    previous = ""

    while i < n:
        char = text[i]
        if in_string:
            if char == "\\":
                i += 2
                continue
            if char == '"':
                in_string = False
                previous = char
            i += 1
            continue

        if char == '"':
            in_string = True
        elif char == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                out[i] = " "
                i += 1
            continue
        elif char == ",":
            j = _skip_blank_and_comments(text, i + 1)
            # a comma after ":" "," "[" or "{" is an error, not a trailing comma
            if j < n and text[j] in "]}" and previous not in ("", ":", ",", "[", "{"):
                out[i] = " "
        if char not in " \t\r\n":
            previous = char
        i += 1

    return "".join(out)


def _skip_blank_and_comments(text: str, j: int) -> int:
    n = len(text)
    while j < n:
        if text[j] in " \t\r\n":
            j += 1
        elif text.startswith("//", j):
            while j < n and text[j] != "\n":
                j += 1
        else:
            break
    return j


def _format_syntax_error(original_text: str, error: json.JSONDecodeError) -> str:
    """Format a JSON syntax error with line, caret, and context."""
    lines = original_text.split("\n")
    parts = [f"Config syntax error at line {error.lineno}, col {error.colno}: {error.msg}"]

    if 1 <= error.lineno <= len(lines):
        parts.append(lines[error.lineno - 1])
        parts.append(" " * (error.colno - 1) + "^")

    return "\n".join(parts)


def _read_text(file_path: Path) -> str:
    try:
        return file_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {file_path}")
    except PermissionError:
        raise ConfigError(f"Permission denied reading config file: {file_path}")
    except UnicodeDecodeError:
        raise ConfigError(f"Config file is not valid UTF-8: {file_path}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {file_path}: {e}")


def load_config(path_or_text: Path | str) -> dict:
    """Load and parse a config file or raw text.

    A Path ending in .yaml/.yml is parsed with PyYAML; anything else is
    treated as JSON-ish (trailing commas and // comments tolerated).

    Raises:
        ConfigError: If the file cannot be read or contains syntax errors.
        TypeError: If path_or_text is neither Path nor str.
    """
    if isinstance(path_or_text, Path):
        original_text = _read_text(path_or_text)
        if path_or_text.suffix.lower() in (".yaml", ".yml"):
            try:
                result = yaml.safe_load(original_text)
            except yaml.YAMLError as e:
                raise ConfigError(f"Config syntax error in {path_or_text}: {e}") from e
            if result is None:
                result = {}
            if not isinstance(result, dict):
                raise ConfigError(
                    f"Config must be a mapping, got {type(result).__name__}"
                )
            return result
    elif isinstance(path_or_text, str):
        original_text = path_or_text
    else:
        raise TypeError(
            f"path_or_text must be Path or str, got {type(path_or_text).__name__}"
        )

    try:
        result = json.loads(preprocess_jsonish(original_text))
    except json.JSONDecodeError as e:
        raise ConfigError(_format_syntax_error(original_text, e)) from e

    if not isinstance(result, dict):
        raise ConfigError(f"Config must be a JSON object, got {type(result).__name__}")

    return result


def load_porter_config(
    config_path: Path | None = None,
    store_dir: str | os.PathLike | None = None,
) -> PorterConfig:
    """Build the effective configuration.

    Order of precedence (highest first): the store_dir argument (CLI),
    PKGPORTER_STORE, the config file, built-in defaults.
    """
    path = config_path or get_config_path()
    data = load_config(path) if path is not None else {}
    config = validate_config(data)

    if store_dir or os.environ.get("PKGPORTER_STORE"):
        config.store_dir = get_store_dir(store_dir)
    return config


__all__ = [
    "ConfigError",
    "PorterConfig",
    "validate_config",
    "preprocess_jsonish",
    "load_config",
    "load_porter_config",
]
