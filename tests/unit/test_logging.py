import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import config  # noqa: E402
from utils import fmt_amount, fmt_signed, log_debug, log_text  # noqa: E402


def test_log_debug_appends_lines(tmp_path, monkeypatch):
    log_path = tmp_path / "ocr_log.txt"
    monkeypatch.setattr(config, "LOG_PATH", str(log_path))

    log_debug("first")
    log_debug("second")

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[0].endswith("[DEBUG] first")
    assert lines[1].endswith("[DEBUG] second")


def test_log_text_rotates_large_file(tmp_path, monkeypatch):
    log_path = tmp_path / "ocr_log.txt"
    monkeypatch.setattr(config, "LOG_PATH", str(log_path))
    monkeypatch.setattr(config, "LOG_MAX_BYTES", 10)
    log_path.write_text("x" * 100, encoding="utf-8")

    log_text("Sell BTC/USDT 05-12 1000.00 5.25%")

    rotated = tmp_path / "ocr_log.txt.old"
    assert rotated.read_text(encoding="utf-8") == "x" * 100
    assert "Sell BTC/USDT" in log_path.read_text(encoding="utf-8")


def test_logging_never_raises_on_bad_path(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOG_PATH", str(tmp_path / "missing" / "dir" / "log.txt"))
    log_debug("ignored")
    log_text("ignored")


def test_number_formatting():
    assert fmt_amount(1234.5) == "1,234.50"
    assert fmt_amount(None) == "-"
    assert fmt_signed(52.5) == "+52.50"
    assert fmt_signed(-7) == "-7.00"
    assert fmt_signed(5.25, suffix="%") == "+5.25%"
    assert fmt_signed("n/a") == "n/a"
