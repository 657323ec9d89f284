"""
Logging setup for the booking engine.

Inside a container (Docker, Kubernetes, Fly.io) the runtime stamps each line,
so the formatter leaves the timestamp out there.
"""
import logging
import os
import sys
from typing import Iterable, Optional, Union

from clinic_booking import config

IS_CONTAINERIZED = bool(
    os.environ.get('FLY_APP_NAME')
    or os.environ.get('KUBERNETES_SERVICE_HOST')
    or os.path.exists('/.dockerenv')
)

LOG_FORMATS = {
    True: ("[%(name)s] %(levelname)s: %(message)s", None),
    False: ("[%(asctime)s] [%(name)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"),
}

# HTTP and Supabase client libraries log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "postgrest", "supabase", "realtime")


def resolve_level(level: Union[int, str, None]) -> int:
    """Accept a numeric level or a name like "debug"; unknown names fall back to INFO."""
    if level is None:
        level = config.LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    level: Union[int, str, None] = None,
    force: bool = False,
    quiet: Optional[Iterable[str]] = None,
) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Level for the root logger (defaults to LOG_LEVEL)
        force: Replace handlers that are already installed
        quiet: Loggers capped at WARNING (defaults to NOISY_LOGGERS)
    """
    root = logging.getLogger()
    if root.handlers and not force:
        return

    for handler in list(root.handlers):
        root.removeHandler(handler)

    log_level = resolve_level(level)
    fmt, datefmt = LOG_FORMATS[IS_CONTAINERIZED]

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in (NOISY_LOGGERS if quiet is None else quiet):
        logging.getLogger(name).setLevel(logging.WARNING)
