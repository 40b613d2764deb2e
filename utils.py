import datetime
import os

import config


def log_text(text):
    """Append a timestamped block to the OCR log, rotating it above LOG_MAX_BYTES."""
    path = config.LOG_PATH
    try:
        if os.path.exists(path) and os.path.getsize(path) > config.LOG_MAX_BYTES:
            # Rotate: .txt -> .txt.old (overwrites the previous rotation)
            try:
                os.replace(path, f"{path}.old")
            except OSError:
                os.remove(path)

        with open(path, "a", encoding="utf-8") as f:
            f.write(f"{datetime.datetime.now().isoformat()}:\n{text}\n\n")
    except OSError:
        pass


def log_debug(message: str):
    """Append a debug line to the OCR log with timestamp (for development diagnostics)."""
    try:
        ts = datetime.datetime.now().isoformat()
        with open(config.LOG_PATH, "a", encoding="utf-8") as f:
            f.write(f"{ts} [DEBUG] {message}\n")
    except OSError:
        pass


def fmt_amount(val, decimals=2):
    if val is None:
        return "-"
    try:
        return f"{float(val):,.{decimals}f}"
    except (TypeError, ValueError):
        return str(val)


def fmt_signed(val, decimals=2, suffix=""):
    if val is None:
        return "-"
    try:
        return f"{float(val):+,.{decimals}f}{suffix}"
    except (TypeError, ValueError):
        return str(val)
