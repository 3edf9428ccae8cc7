"""
Logger Configuration
统一日志配置 (Rich 控制台 + 可选文件输出)
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

from rich.logging import RichHandler
from rich.console import Console


console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_FORMAT_SIMPLE = "%(message)s"

LOG_DIR = Path(__file__).parent.parent / "logs"

# Loggers are created per module via logging.getLogger(__name__); handlers
# are attached once at the package roots listed here.
PACKAGE_LOGGERS = ("aggregator", "config", "intelligence", "orchestrator", "scrapers", "storage", "main")


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logger(
    name: str = "research_agent",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    use_rich: bool = True,
) -> logging.Logger:
    """
    Configure a logger with a console handler and an optional file handler.

    Args:
        name: logger name
        level: logging level (int or name)
        log_file: file name under logs/ (optional)
        use_rich: pretty console output through Rich

    Returns:
        The configured logger
    """
    level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    if use_rich:
        console_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger


def configure_package_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
) -> None:
    """Attach the shared handlers to every top-level package logger"""
    root = setup_logger("research_agent", level=level, log_file=log_file)
    for name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        package_logger.setLevel(root.level)
        for handler in root.handlers:
            if handler not in package_logger.handlers:
                package_logger.addHandler(handler)
        package_logger.propagate = False


def get_logger(name: str = "research_agent") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger
