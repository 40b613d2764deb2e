import pytest

import config


@pytest.fixture(autouse=True)
def _isolated_runtime(tmp_path, monkeypatch):
    """Keep OCR log writes and the runtime debug flag out of the working tree and other tests."""
    monkeypatch.setattr(config, "LOG_PATH", str(tmp_path / "ocr_log.txt"))
    monkeypatch.setattr(config, "_runtime_debug", None)
    yield
