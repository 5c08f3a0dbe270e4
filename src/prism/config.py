"""Environment-driven configuration and logging setup."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None:
        return None
    value = value.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    return None


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, ""))
    except ValueError:
        return default


@dataclass
class PrismConfig:
    """Process-level switches.

    ``force_tty`` overrides the ``isatty`` check for stdout, ``write_log``
    mirrors every terminal write into a file, and ``fallback_columns`` is used
    when the terminal width cannot be queried.
    """

    force_tty: bool | None = None
    no_color: bool = False
    force_color: bool = False
    write_log: str = ""
    log_file: str = ""
    log_level: str = "WARNING"
    fallback_columns: int = 80

    @classmethod
    def from_env(cls) -> PrismConfig:
        return cls(
            force_tty=_env_flag("PRISM_TTY"),
            no_color="NO_COLOR" in os.environ,
            force_color=bool(_env_flag("FORCE_COLOR")),
            write_log=os.environ.get("PRISM_WRITE_LOG", ""),
            log_file=os.environ.get("PRISM_LOG_FILE", ""),
            log_level=os.environ.get("PRISM_LOG_LEVEL", "WARNING").upper(),
            fallback_columns=_env_int("COLUMNS", 80),
        )


def stdout_is_tty(config: PrismConfig | None = None) -> bool:
    """Whether stdout is an interactive terminal (honours ``PRISM_TTY``)."""
    config = config or PrismConfig.from_env()
    if config.force_tty is not None:
        return config.force_tty
    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def colors_enabled(config: PrismConfig | None = None) -> bool:
    """Whether styled output should carry ANSI codes."""
    config = config or PrismConfig.from_env()
    if config.no_color:
        return False
    if config.force_color:
        return True
    return stdout_is_tty(config)


def configure_logging(config: PrismConfig | None = None) -> None:
    """Send ``prism`` log records to ``PRISM_LOG_FILE`` if one is configured.

    Records are never written to the terminal being drawn on.
    """
    config = config or PrismConfig.from_env()
    if not config.log_file:
        return
    handler = logging.FileHandler(config.log_file, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger = logging.getLogger("prism")
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, config.log_level, logging.WARNING))
