# catalog_sync/utils/logger.py
import os, sys, time

LEVELS = {"ERROR": 40, "WARN": 30, "INFO": 20, "DEBUG": 10, "NONE": 100}
_level = LEVELS.get(os.getenv("LOG_LEVEL", "INFO").upper(), 20)

def set_level(name: str):
    global _level
    _level = LEVELS.get((name or "INFO").upper(), 20)

def _ts():
    return time.strftime("%H:%M:%S")

def log(level: str, msg: str):
    if LEVELS[level] < _level:
        return
    stream = sys.stderr if LEVELS[level] >= 40 else sys.stdout
    print(f"[{_ts()}][{level}] {msg}", file=stream, flush=True)

def debug(msg): log("DEBUG", msg)
def info(msg):  log("INFO", msg)
def warn(msg):  log("WARN", msg)
def error(msg): log("ERROR", msg)

def describe(exc: BaseException) -> str:
    """Short 'Type: message' rendering for log lines and summaries."""
    text = str(exc).strip()
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__
