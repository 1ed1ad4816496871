import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler
from stimer.common.setup import APP_NAME, PATHS
from datetime import datetime

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Reads SESSIONTIMER_LOG_LEVEL ("DEBUG", "info", ...). Anything unrecognized falls back to `default`.
def _level_from_env(default=logging.DEBUG):
    value = os.getenv("SESSIONTIMER_LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(value) if value else default
    return level if isinstance(level, int) else default

def _console_from_env():
    return os.getenv("SESSIONTIMER_LOG_CONSOLE", "").strip().lower() in ("1", "true", "yes", "on")

# Adds a handler under `handler_name` unless the logger already carries one, so calling get_logger twice
# never doubles up output. `factory` is only called when the handler is actually needed.
def _attach(logger: logging.Logger, handler_name, factory, level, fmt):
    if any(h.get_name() == handler_name for h in logger.handlers):
        return None
    handler = factory()
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.set_name(handler_name)
    logger.addHandler(handler)
    return handler

# Keeps the `keep` newest per-run debug logs and deletes the rest.
def _prune_runs(run_dir: Path, name, keep):
    runs = sorted(run_dir.glob(f"{name}_*.log"),key=lambda p: p.stat().st_mtime,reverse=True)
    for run in runs[keep:]:
        try: run.unlink()
        except OSError: pass

def get_logger(
        name = APP_NAME.lower(),
        level = logging.INFO,
        log_dir: Path | None = None,
        max_bytes = 5 * 1024 * 1024,
        backup_count = 5,
        persistent = True,
        console = False,
        historical_debugs: int = 10
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(min(level, logging.DEBUG) if historical_debugs > 0 else level)

    log_dir = log_dir or PATHS.logs
    log_dir.mkdir(parents=True,exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT,LOG_DATE_FORMAT)

    # Rotating log that survives across runs
    if persistent:
        _attach(logger, f"{name}:persistent", lambda: RotatingFileHandler(
            filename=log_dir / f"{name}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        ), level, fmt)

    # latest.log only ever holds the current run
    _attach(logger, f"{name}:latest",
            lambda: logging.FileHandler(log_dir / "latest.log", mode="w", encoding="utf-8"), level, fmt)

    # Full debug trace, one file per run, only the newest few kept
    if historical_debugs > 0:
        run_dir = log_dir / "debug"
        run_dir.mkdir(parents=True,exist_ok=True)
        added = _attach(logger, f"{name}:historical_debug", lambda: logging.FileHandler(
            run_dir / f"{name}_{datetime.now():%Y-%m-%d_%H-%M-%S}.log",
            encoding="utf-8",
        ), logging.DEBUG, fmt)
        if added is not None:
            _prune_runs(run_dir, name, historical_debugs)

    if console:
        _attach(logger, f"{name}:console", logging.StreamHandler, level, fmt)

    return logger

log = get_logger(level=_level_from_env(),console=_console_from_env(),historical_debugs=10)
log.info(f"=== {APP_NAME} started, logging to '{PATHS.logs}' ===")
