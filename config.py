import os

# -----------------------
# Configuration
# -----------------------


def _env_int(name, default, minimum=None):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    if minimum is not None:
        value = max(minimum, value)
    return value


def _env_bool(name, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


def _env_year(name, default):
    """Out-of-range years fall back to the default (dates are YYYY-MM-DD)."""
    value = _env_int(name, default)
    if not MIN_TRADE_YEAR <= value <= MAX_TRADE_YEAR:
        return default
    return value


# Year prefixed onto the MM-DD fragment found in a transcript.
# Bot logs only print month-day; override when analyzing another year.
MIN_TRADE_YEAR = 1000
MAX_TRADE_YEAR = 9999
TRADE_YEAR = _env_year("SELL_ANALYZER_YEAR", 2025)

# Anchor line + following lines joined into one window (OCR splits one trade over several lines)
WINDOW_SIZE = _env_int("SELL_ANALYZER_WINDOW", 5, minimum=1)

# Lines above the anchor searched for a pair when the window has none
PAIR_LOOKBEHIND = _env_int("SELL_ANALYZER_PAIR_LOOKBEHIND", 1, minimum=0)

# -----------------------
# OCR
# -----------------------
# Engines: 'easyocr' (primary), 'tesseract', 'paddle' (optional install)
OCR_ENGINE = os.getenv("SELL_ANALYZER_OCR_ENGINE", "easyocr").strip().lower() or "easyocr"
OCR_FALLBACK_ENABLED = _env_bool("SELL_ANALYZER_OCR_FALLBACK", True)
OCR_LANGUAGES = _env_list("SELL_ANALYZER_OCR_LANGS", ["en"])
OCR_CONFIDENCE_THRESHOLD = 0.3
USE_GPU = _env_bool("SELL_ANALYZER_GPU", False)

# None = tesseract binary from PATH
TESS_PATH = os.getenv("TESSERACT_CMD") or None
# Characters that appear in bot transaction logs (pairs, dates, amounts, percentages)
TESSERACT_WHITELIST = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz/.-+%:, "

# -----------------------
# Logging
# -----------------------
LOG_PATH = os.getenv("SELL_ANALYZER_LOG", "ocr_log.txt")
LOG_MAX_BYTES = 10 * 1024 * 1024  # rotate at 10 MB

DEBUG = _env_bool("SELL_ANALYZER_DEBUG", False)

_runtime_debug = None


def get_trade_year(year=None):
    """
    Explicit year wins over SELL_ANALYZER_YEAR.

    Raises:
        ValueError: explicit year is not a 4-digit year
    """
    if year is None:
        return TRADE_YEAR
    year = int(year)
    if not MIN_TRADE_YEAR <= year <= MAX_TRADE_YEAR:
        raise ValueError(f"year must have 4 digits, got {year}")
    return year


def get_debug_mode():
    """Debug flag set at runtime (GUI/CLI) wins over the environment."""
    if _runtime_debug is not None:
        return _runtime_debug
    return DEBUG


def set_debug_mode(flag):
    global _runtime_debug
    _runtime_debug = bool(flag)
