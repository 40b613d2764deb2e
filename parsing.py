import itertools
import math
import re
from dataclasses import asdict, dataclass
from typing import Callable, Iterable, List, Optional

import config
from utils import log_debug

# -----------------------
# Pre-compiled Regex Patterns
# -----------------------
_PAIR_PATTERN = re.compile(r"[A-Z]{2,10}/USDT")
_DATE_FRAGMENT_PATTERN = re.compile(r"[0-9]{2}-[0-9]{2}")
_NUMBER_PATTERN = re.compile(r"[0-9]+\.?[0-9]*")
# OCR renders negative results with '-', '+' or the typographic minus
_PERCENT_PATTERN = re.compile(r"[-+−]?[0-9]+\.?[0-9]*%")

_ANCHOR_KEYWORD = "sell"

MISSING_PAIR = "missing_pair"
MISSING_DATE = "missing_date"
MISSING_NUMBERS = "missing_numbers"
MISSING_PERCENT = "missing_percent"
CONVERSION_ERROR = "conversion_error"


@dataclass(frozen=True)
class TradeRecord:
    id: int
    pair: str
    date: str
    total: float
    result: float
    profit: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ParseFailure:
    anchor_index: int
    reason: str
    window: str
    detail: Optional[str] = None


@dataclass(frozen=True)
class WindowResult:
    """Outcome of one anchor window: either a record or the reason it was skipped."""

    anchor_index: int
    record: Optional[TradeRecord] = None
    failure: Optional[ParseFailure] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


# -----------------------
# Matchers
# -----------------------
def find_pair(text: str) -> Optional[str]:
    m = _PAIR_PATTERN.search(text or "")
    return m.group(0) if m else None


def find_date_fragment(text: str) -> Optional[str]:
    """First 'MM-DD' fragment. Bot logs print month-day only."""
    m = _DATE_FRAGMENT_PATTERN.search(text or "")
    return m.group(0) if m else None


def find_numeric_tokens(text: str) -> List[str]:
    return _NUMBER_PATTERN.findall(text or "")


def find_percent(text: str) -> Optional[str]:
    m = _PERCENT_PATTERN.search(text or "")
    return m.group(0) if m else None


def parse_number(token: str) -> float:
    """Float from a matched token ('1000.00', '-3.50%', '−2%'). Raises ValueError."""
    cleaned = token.strip().replace("−", "-")
    if cleaned.endswith("%"):
        cleaned = cleaned[:-1]
    value = float(cleaned)
    if not math.isfinite(value):
        raise ValueError(f"non-finite number: {token!r}")
    return value


def select_total_token(tokens: List[str]) -> str:
    """
    Pick the principal among all numbers of a window.

    The percentage is usually the last number of a trade row, so the one
    before it is taken as the amount. Best effort only: any extra number
    (timestamps, fees) between amount and percentage shifts the pick.
    """
    if len(tokens) >= 2:
        return tokens[-2]
    return tokens[0]


def compute_profit(total: float, result: float) -> float:
    return total * result / 100


# -----------------------
# Windowing
# -----------------------
def split_lines(transcript: str) -> List[str]:
    return transcript.split("\n")


def is_anchor(line: str) -> bool:
    return _ANCHOR_KEYWORD in line.lower()


def build_window(lines: List[str], index: int, size: Optional[int] = None) -> str:
    if size is None:
        size = config.WINDOW_SIZE
    return " ".join(lines[index:index + max(1, size)])


def build_context(lines: List[str], index: int, lookbehind: Optional[int] = None) -> str:
    """Lines above the anchor, nearest first (used only to find a missing pair)."""
    if lookbehind is None:
        lookbehind = config.PAIR_LOOKBEHIND
    if lookbehind <= 0 or index <= 0:
        return ""
    above = lines[max(0, index - lookbehind):index]
    return " ".join(reversed(above))


# -----------------------
# Window parsing
# -----------------------
def _failure(anchor_index, reason, window, detail=None):
    return WindowResult(
        anchor_index=anchor_index,
        failure=ParseFailure(anchor_index=anchor_index, reason=reason, window=window, detail=detail),
    )


def parse_window(window: str, anchor_index: int, year: int, next_id: Callable[[], int],
                 context: str = "") -> WindowResult:
    """
    Turn one anchor window into a TradeRecord.

    All four groups (pair, MM-DD, at least two numbers, percentage) must be
    present; otherwise the failure names the first missing one. Never raises
    for malformed text.
    """
    pair = find_pair(window) or find_pair(context)
    if pair is None:
        return _failure(anchor_index, MISSING_PAIR, window)

    fragment = find_date_fragment(window)
    if fragment is None:
        return _failure(anchor_index, MISSING_DATE, window)

    numbers = find_numeric_tokens(window)
    if len(numbers) < 2:
        return _failure(anchor_index, MISSING_NUMBERS, window, detail=f"found {len(numbers)}")

    percent = find_percent(window)
    if percent is None:
        return _failure(anchor_index, MISSING_PERCENT, window)

    try:
        total = parse_number(select_total_token(numbers))
        result = parse_number(percent)
        profit = compute_profit(total, result)
    except (ValueError, ArithmeticError) as exc:
        return _failure(anchor_index, CONVERSION_ERROR, window, detail=str(exc))

    record = TradeRecord(
        id=next_id(),
        pair=pair,
        date=f"{year}-{fragment}",
        total=total,
        result=result,
        profit=profit,
    )
    return WindowResult(anchor_index=anchor_index, record=record)


def scan_windows(transcript: str, year: Optional[int] = None, window_size: Optional[int] = None,
                 pair_lookbehind: Optional[int] = None) -> List[WindowResult]:
    """
    Evaluate every anchor line of a transcript.

    Each anchor is tried exactly once and scanning resumes at the next line,
    so anchors closer than one window apart produce overlapping windows that
    may yield the same trade twice.
    """
    if not transcript:
        return []

    year = config.get_trade_year(year)
    size = config.WINDOW_SIZE if window_size is None else max(1, int(window_size))
    lookbehind = config.PAIR_LOOKBEHIND if pair_lookbehind is None else max(0, int(pair_lookbehind))
    debug = config.get_debug_mode()

    # ids are unique per call only
    next_id = itertools.count(1).__next__

    lines = split_lines(transcript)
    results = []
    for i, line in enumerate(lines):
        if not is_anchor(line):
            continue
        window = build_window(lines, i, size)
        context = build_context(lines, i, lookbehind)
        res = parse_window(window, i, year, next_id, context=context)
        if debug:
            if res.ok:
                rec = res.record
                log_debug(f"[PARSE] line {i}: {rec.pair} {rec.date} total={rec.total} result={rec.result}%")
            else:
                fail = res.failure
                extra = f" ({fail.detail})" if fail.detail else ""
                log_debug(f"[PARSE] line {i}: skipped {fail.reason}{extra} window='{window[:120]}'")
        results.append(res)

    if debug:
        found = sum(1 for r in results if r.ok)
        log_debug(f"[PARSE] anchors={len(results)} records={found} lines={len(lines)}")
    return results


def collect_failures(results: Iterable[WindowResult]) -> List[ParseFailure]:
    return [r.failure for r in results if r.failure is not None]


def extract_sell_trades(transcript: str, year: Optional[int] = None, window_size: Optional[int] = None,
                        pair_lookbehind: Optional[int] = None) -> List[TradeRecord]:
    """SELL trade records of a transcript, top to bottom. Empty list when nothing qualifies."""
    results = scan_windows(transcript, year=year, window_size=window_size, pair_lookbehind=pair_lookbehind)
    return [r.record for r in results if r.ok]


extract = extract_sell_trades
