# tests/test_logging_setup.py

from __future__ import annotations

import logging

from farm_tasks.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_levels() -> None:
    f = _ConsoleNoiseFilter()
    assert f.filter(_record("farm_tasks.tasks.reconciler", logging.DEBUG))
    assert not f.filter(_record("farm_tasks.tasks.task_scheduler", logging.INFO))
    assert f.filter(_record("farm_tasks.tasks.task_scheduler", logging.WARNING))
    assert not f.filter(_record("httpx", logging.WARNING))
    assert f.filter(_record("httpcore.connection", logging.ERROR))
    assert not f.filter(_record("farm_tasks.tasks.task_store", logging.DEBUG))
    assert f.filter(_record("farm_tasks.tasks.task_store", logging.WARNING))
    assert f.filter(_record("farm_tasks.tasks.task_scheduler_extra", logging.DEBUG))
    assert not f.filter(_record("sqlite3", logging.WARNING))


def test_setup_logging_writes_file(tmp_path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers)
    try:
        setup_logging(log_dir=tmp_path, console_level=logging.WARNING)
        logging.getLogger("farm_tasks.test").info("hello file")
        for h in root.handlers:
            h.flush()
        assert "hello file" in (tmp_path / "farm.log").read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved:
            root.addHandler(h)
