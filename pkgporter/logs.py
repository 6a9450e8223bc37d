"""Logging setup for pkgporter."""

import logging
from pathlib import Path

_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_installed_handlers: list[logging.Handler] = []
_active_log_path: Path | None = None


def setup_logging(debug: bool = False, log_path: Path | None = None) -> Path | None:
    """Configure the root logger once per process.

    Records go to log_path (INFO, or DEBUG with debug=True). If log_path
    cannot be opened, the log is written to ./package_porter.log instead.
    Console output stays quiet unless debug is set; user-facing progress is
    printed by the commands themselves.

    Returns the log file actually in use.
    """
    global _active_log_path

    if _installed_handlers:
        return _active_log_path

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    chosen: Path | None = None
    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            chosen = log_path
        except OSError:
            chosen = Path.cwd() / log_path.name
            file_handler = logging.FileHandler(chosen, encoding="utf-8")
        file_handler.setFormatter(fmt)
        _installed_handlers.append(file_handler)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    console.setLevel(logging.DEBUG if debug else logging.WARNING)
    _installed_handlers.append(console)

    for handler in _installed_handlers:
        root.addHandler(handler)

    _active_log_path = chosen
    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen
    )
    return chosen


def reset_logging() -> None:
    """Remove the handlers installed by setup_logging."""
    global _active_log_path

    root = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root.removeHandler(handler)
        handler.close()
    _active_log_path = None
