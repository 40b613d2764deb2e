import io
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import analyzer  # noqa: E402
import main  # noqa: E402


def _write(tmp_path, text):
    path = tmp_path / "transcript.txt"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_text_mode_prints_report(tmp_path, capsys):
    path = _write(tmp_path, "BTC/USDT\nSell 05-12 1000.00 5.25%\n")

    code = main.main(["--text", path])

    out = capsys.readouterr().out
    assert code == main.EXIT_OK
    assert "BTC/USDT" in out
    assert "SELL trades: 1" in out


def test_year_option(tmp_path, capsys):
    path = _write(tmp_path, "Sell BTC/USDT 05-12 1000.00 5.25%")

    assert main.main(["--text", path, "--year", "2024"]) == main.EXIT_OK
    assert "2024-05-12" in capsys.readouterr().out


def test_no_trades_exit_code(tmp_path, capsys):
    path = _write(tmp_path, "no trades here\njust noise\n")

    assert main.main(["--text", path]) == main.EXIT_NO_TRADES
    assert "no SELL trades found" in capsys.readouterr().out


def test_stdin_transcript(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("Sell XRP/USDT 03-03 200.00 -3.50%"))

    assert main.main(["--text", "-", "--show-text"]) == main.EXIT_OK
    out = capsys.readouterr().out
    assert out.startswith("Sell XRP/USDT 03-03 200.00 -3.50%")
    assert "<stdin>:" in out
    assert "-7.00" in out


def test_missing_arguments(capsys):
    assert main.main([]) == main.EXIT_ERROR
    assert "error:" in capsys.readouterr().err


def test_missing_files(tmp_path, capsys):
    assert main.main([str(tmp_path / "nope.png")]) == main.EXIT_ERROR
    assert "Screenshot not found" in capsys.readouterr().err

    assert main.main(["--text", str(tmp_path / "nope.txt")]) == main.EXIT_ERROR
    assert "cannot read transcript" in capsys.readouterr().err


def test_image_mode_uses_ocr(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(analyzer, "extract_text", lambda source, method, progress: "Sell BTC/USDT 05-12 1000.00 5.25%")

    assert main.main([str(tmp_path / "shot.png"), "--engine", "tesseract"]) == main.EXIT_OK
    assert "+52.50" in capsys.readouterr().out


def test_image_without_text_is_an_error(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(analyzer, "extract_text", lambda source, method, progress: "")

    assert main.main([str(tmp_path / "blank.png")]) == main.EXIT_ERROR
    assert "no text recognized" in capsys.readouterr().out


def test_year_without_four_digits_is_an_error(tmp_path, capsys):
    path = _write(tmp_path, "Sell BTC/USDT 05-12 1000.00 5.25%")

    assert main.main(["--text", path, "--year", "25"]) == main.EXIT_ERROR
    assert "4 digits" in capsys.readouterr().err


def test_debug_prints_engine_status(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(analyzer, "extract_text", lambda source, method, progress: "Sell BTC/USDT 05-12 1000.00 5.25%")

    assert main.main([str(tmp_path / "shot.png"), "--debug"]) == main.EXIT_OK
    err = capsys.readouterr().err
    assert "engines: " in err
    assert "tesseract=ready" in err
