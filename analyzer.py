from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import pandas as pd

import config
from ocr_engines import ProgressCallback, extract_text
from parsing import ParseFailure, TradeRecord, collect_failures, scan_windows
from utils import fmt_amount, fmt_signed, log_debug

TRADE_COLUMNS = ["id", "pair", "date", "total", "result", "profit"]


@dataclass(frozen=True)
class TradeSummary:
    count: int
    total_profit: float
    average_result: float
    total_amount: float


@dataclass
class AnalysisResult:
    source: str
    transcript: str
    trades: List[TradeRecord] = field(default_factory=list)
    summary: TradeSummary = None
    failures: List[ParseFailure] = field(default_factory=list)

    @property
    def ocr_failed(self) -> bool:
        """True when OCR produced no text at all (as opposed to text without SELL trades)."""
        return not self.transcript.strip()

    def __post_init__(self):
        if self.summary is None:
            self.summary = summarize_trades(self.trades)


def summarize_trades(trades: Iterable[TradeRecord]) -> TradeSummary:
    trades = list(trades)
    if not trades:
        return TradeSummary(count=0, total_profit=0.0, average_result=0.0, total_amount=0.0)
    return TradeSummary(
        count=len(trades),
        total_profit=sum(t.profit for t in trades),
        average_result=sum(t.result for t in trades) / len(trades),
        total_amount=sum(t.total for t in trades),
    )


def trades_to_dataframe(trades: Iterable[TradeRecord]) -> pd.DataFrame:
    return pd.DataFrame([t.to_dict() for t in trades], columns=TRADE_COLUMNS)


def format_report(result: AnalysisResult) -> str:
    if result.ocr_failed:
        return f"{result.source}: no text recognized"
    if not result.trades:
        return f"{result.source}: no SELL trades found"

    df = trades_to_dataframe(result.trades)
    table = df.drop(columns=["id"]).to_string(
        index=False,
        formatters={
            "total": fmt_amount,
            "result": lambda v: fmt_signed(v, suffix="%"),
            "profit": fmt_signed,
        },
    )
    s = result.summary
    summary_lines = [
        f"SELL trades: {s.count}",
        f"Total profit: {fmt_signed(s.total_profit)} USDT",
        f"Average result: {fmt_signed(s.average_result, suffix='%')}",
        f"Total amount: {fmt_amount(s.total_amount)} USDT",
    ]
    return "\n".join([f"{result.source}:", table, ""] + summary_lines)


class SellAnalyzer:
    """Screenshot or transcript -> SELL trades + summary."""

    def __init__(self, year=None, engine="auto", debug=None):
        self.year = config.get_trade_year(year)
        self.engine = engine
        if debug is not None:
            config.set_debug_mode(debug)
        self.debug = config.get_debug_mode()
        self.last_result: Optional[AnalysisResult] = None

    def analyze_text(self, text, source="<text>") -> AnalysisResult:
        text = text or ""
        results = scan_windows(text, year=self.year)
        trades = [r.record for r in results if r.ok]
        result = AnalysisResult(
            source=str(source),
            transcript=text,
            trades=trades,
            failures=collect_failures(results),
        )
        if self.debug:
            log_debug(f"[ANALYZE] {source}: {len(trades)} trades, {len(result.failures)} skipped anchors")
        self.last_result = result
        return result

    def analyze_image(self, source, progress: Optional[ProgressCallback] = None) -> AnalysisResult:
        """
        Run OCR on a screenshot and parse the transcript.

        Raises:
            ImageLoadError: screenshot missing or unreadable
        """
        text = extract_text(source, method=self.engine, progress=progress)
        return self.analyze_text(text, source=str(source))
