import re
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import config  # noqa: E402
from parsing import extract, extract_sell_trades  # noqa: E402


def _values(trades):
    return [(t.pair, t.date, t.total, t.result, t.profit) for t in trades]


def test_pair_on_line_above_sell_row():
    trades = extract_sell_trades("BTC/USDT\nSell 05-12 1000.00 5.25%\n")

    assert len(trades) == 1
    t = trades[0]
    assert t.pair == "BTC/USDT"
    assert t.date == "2025-05-12"
    assert t.total == 1000.0
    assert t.result == 5.25
    assert t.profit == pytest.approx(52.5)


def test_noise_only_transcript_has_no_trades():
    assert extract_sell_trades("no trades here\njust noise\n") == []


@pytest.mark.parametrize("transcript", ["", None, "\n\n\n"])
def test_empty_input_returns_empty_list(transcript):
    assert extract_sell_trades(transcript) == []


def test_missing_percent_drops_anchor():
    assert extract_sell_trades("Sell ETH/USDT 04-01 500.00") == []


def test_negative_result_keeps_sign():
    trades = extract_sell_trades("Sell XRP/USDT 03-03 200.00 -3.50%")

    assert len(trades) == 1
    assert trades[0].result == -3.5
    assert trades[0].profit == pytest.approx(-7.0)


def test_typographic_minus_is_negative():
    trades = extract_sell_trades("Sell XRP/USDT 03-03 200.00 −1.00%")
    assert trades[0].result == -1.0


def test_trade_split_over_several_lines():
    transcript = (
        "Bot log\n"
        "SELL\n"
        "SOL/USDT\n"
        "07-15\n"
        "1500.50\n"
        "-1.20%\n"
        "BUY BTC/USDT 07-15 900 3%\n"
    )
    trades = extract_sell_trades(transcript)

    assert _values(trades) == [("SOL/USDT", "2025-07-15", 1500.5, -1.2, pytest.approx(-18.006))]


def test_records_follow_transcript_order():
    transcript = "\n".join([
        "Sell BTC/USDT 01-02 100 1%",
        "noise",
        "noise",
        "noise",
        "noise",
        "Sell ETH/USDT 03-04 200 2%",
    ])
    trades = extract_sell_trades(transcript)

    assert [t.pair for t in trades] == ["BTC/USDT", "ETH/USDT"]
    assert [t.total for t in trades] == [100.0, 200.0]


def test_adjacent_anchors_can_repeat_one_trade():
    transcript = "SELL ETH/USDT 06-01 250.00 2.00%\nsell ETH/USDT 06-01 250.00 2.00%"
    trades = extract_sell_trades(transcript)

    # Both windows see a complete trade; duplicates are expected, not merged
    assert len(trades) == 2
    assert _values(trades)[0] == _values(trades)[1] == ("ETH/USDT", "2025-06-01", 250.0, 2.0, 5.0)
    assert trades[0].id != trades[1].id


@pytest.mark.parametrize("word", ["Sell", "SELL", "sell", "SeLL"])
def test_anchor_word_any_case(word):
    trades = extract_sell_trades(f"{word} BTC/USDT 05-12 1000.00 5.25%")
    assert len(trades) == 1


def test_extra_number_between_amount_and_percent_shifts_total():
    # Best-effort heuristic: the number right before the percentage is taken as total
    trades = extract_sell_trades("Sell BTC/USDT 05-12 1000.00 12:30 5.25%")
    assert trades[0].total == 30.0


def test_profit_is_derived_from_total_and_result():
    transcript = "\n".join([
        "Sell BTC/USDT 05-12 1234.56 7.89%",
        "x",
        "x",
        "x",
        "x",
        "Sell DOGE/USDT 05-13 0.5 -99.9%",
        "x",
        "x",
        "x",
        "x",
        "Sell PEPE/USDT 05-14 77 0%",
    ])
    trades = extract_sell_trades(transcript)

    assert len(trades) == 3
    for t in trades:
        assert abs(t.profit - t.total * t.result / 100) <= 1e-9


def test_repeated_calls_give_same_records():
    transcript = "BTC/USDT\nSell 05-12 1000.00 5.25%\nSell XRP/USDT 03-03 200.00 -3.50%"
    first = extract_sell_trades(transcript)
    second = extract_sell_trades(transcript)

    assert _values(first) == _values(second)


def test_ids_unique_within_one_call():
    transcript = "\n".join(f"Sell BTC/USDT 05-{day:02d} 100 1%" for day in range(1, 11))
    trades = extract_sell_trades(transcript)

    assert len(trades) == 10
    assert len({t.id for t in trades}) == 10


def test_year_argument_and_config_default(monkeypatch):
    assert extract_sell_trades("Sell BTC/USDT 05-12 1000 5%", year=2024)[0].date == "2024-05-12"

    monkeypatch.setattr(config, "TRADE_YEAR", 2023)
    assert extract_sell_trades("Sell BTC/USDT 05-12 1000 5%")[0].date == "2023-05-12"


def test_year_must_have_four_digits():
    for year in (25, 999, 10000):
        with pytest.raises(ValueError):
            extract_sell_trades("Sell BTC/USDT 05-12 1000 5%", year=year)


def test_unicode_digit_date_is_not_a_record():
    assert extract_sell_trades("Sell BTC/USDT ０５-１２ 1000.00 5.25%") == []

    trades = extract_sell_trades("Sell BTC/USDT 05-12 1000.00 5.25%\n０５-１２")
    assert all(re.fullmatch("[0-9]{4}-[0-9]{2}-[0-9]{2}", t.date) for t in trades)
    assert [t.date for t in trades] == ["2025-05-12"]


def test_window_size_limits_lookahead():
    transcript = "Sell BTC/USDT\n05-12\n1000\n5%"
    assert len(extract_sell_trades(transcript, window_size=4)) == 1
    assert extract_sell_trades(transcript, window_size=3) == []


def test_pair_lookbehind_can_be_disabled():
    assert extract_sell_trades("BTC/USDT\nSell 05-12 1000.00 5.25%", pair_lookbehind=0) == []


def test_overflowing_amount_skips_only_that_anchor():
    transcript = "\n".join([
        "Sell BTC/USDT 05-12 " + "9" * 400 + " 5%",
        "x",
        "x",
        "x",
        "x",
        "Sell ETH/USDT 05-13 100 2%",
    ])
    trades = extract_sell_trades(transcript)

    assert [t.pair for t in trades] == ["ETH/USDT"]


def test_extract_alias():
    assert extract is extract_sell_trades
