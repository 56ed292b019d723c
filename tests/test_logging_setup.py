import logging

import pytest

from habitlite.logging_setup import _ConsoleNoiseFilter, console_level_from_env, setup_logging


def _record(name, level):
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_filter_keeps_own_logs_and_quiets_others():
    f = _ConsoleNoiseFilter()
    assert f.filter(_record("habitlite.storage", logging.DEBUG))
    assert not f.filter(_record("streamlit.runtime", logging.INFO))
    assert f.filter(_record("streamlit.runtime", logging.WARNING))


@pytest.mark.parametrize("raw, expected", [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("loud", logging.INFO), ("", logging.INFO)])
def test_console_level_from_env(monkeypatch, raw, expected):
    monkeypatch.setenv("HABITLITE_LOG_LEVEL", raw)
    assert console_level_from_env() == expected


def test_setup_logging_writes_file(tmp_path):
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        log_file = tmp_path / "logs" / "habitlite.log"
        setup_logging(console_level=logging.ERROR, log_file=log_file)
        logging.getLogger("habitlite.test").info("hello file")
        for h in root.handlers:
            h.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])
        logging.captureWarnings(False)
