"""Tests for path resolution, logging setup and timer scheduling."""

import logging
import threading

from metroguide.perception import LabelTable
from metroguide.utils import (
    ThreadingScheduler,
    get_configs_dir,
    get_project_root,
    resolve_data_path,
    set_verbosity,
    setup_logger,
)
from metroguide.utils.logging_config import PACKAGE_LOGGER


class TestPaths:
    """Test locating bundled files."""

    def test_project_root(self, project_root):
        """Test the root is the checkout holding the configs."""
        assert get_project_root() == project_root.resolve()
        assert (get_configs_dir() / "guidance_config.yaml").exists()

    def test_resolve_relative_from_elsewhere(self, tmp_path, monkeypatch, project_root):
        """Test config-relative paths resolve from any working directory."""
        monkeypatch.chdir(tmp_path)

        assert resolve_data_path("configs/labels.txt") == project_root.resolve() / "configs" / "labels.txt"
        assert len(LabelTable.from_file("configs/labels.txt")) == 11

    def test_resolve_existing_and_absolute(self, tmp_path, monkeypatch):
        """Test paths that already exist are kept."""
        labels = tmp_path / "mine.txt"
        labels.write_text("puerta\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        assert resolve_data_path("mine.txt").name == "mine.txt"
        assert resolve_data_path(labels) == labels
        assert resolve_data_path(None) is None
        assert resolve_data_path("") is None

    def test_missing_label_file(self, tmp_path):
        """Test a missing label file gives an empty table."""
        assert len(LabelTable.from_file(tmp_path / "missing.txt")) == 0


class TestLogging:
    """Test the package logger hierarchy."""

    def test_names_under_package(self):
        """Test script loggers are placed under the package logger."""
        assert setup_logger("__main__").name == "metroguide.__main__"
        assert setup_logger("metroguide.cli.replay_session").name == "metroguide.cli.replay_session"

    def test_log_file(self, tmp_path):
        """Test records reach an added log file once."""
        log_file = tmp_path / "logs" / "session.log"
        logger = setup_logger("metroguide.test_utils", log_file=log_file)
        setup_logger("metroguide.test_utils", log_file=log_file)
        package = logging.getLogger(PACKAGE_LOGGER)
        handlers = [h for h in package.handlers if isinstance(h, logging.FileHandler)]
        try:
            logger.info("platform reached")
            for handler in handlers:
                handler.flush()

            assert len(handlers) == 1
            assert "platform reached" in log_file.read_text(encoding="utf-8")
        finally:
            for handler in handlers:
                package.removeHandler(handler)
                handler.close()

    def test_set_verbosity(self):
        """Test switching the package level."""
        package = logging.getLogger(PACKAGE_LOGGER)
        try:
            set_verbosity(True)
            assert package.level == logging.DEBUG
        finally:
            set_verbosity(False)
        assert package.level == logging.INFO


class TestThreadingScheduler:
    """Test timers hand callbacks to the dispatcher."""

    def test_dispatch(self):
        """Test a fired timer is dispatched rather than run on the timer thread."""
        dispatched = []
        fired = threading.Event()

        def dispatch(fn):
            dispatched.append(fn)
            fired.set()

        scheduler = ThreadingScheduler(dispatch)
        calls = []
        scheduler.call_later(0.01, lambda: calls.append(1))

        assert fired.wait(timeout=2.0)
        assert calls == []
        dispatched[0]()
        assert calls == [1]

    def test_cancel(self):
        """Test a cancelled timer never runs its callback."""
        calls = []
        scheduler = ThreadingScheduler()
        handle = scheduler.call_later(0.05, lambda: calls.append(1))
        handle.cancel()

        assert handle.cancelled is True
        threading.Event().wait(0.1)
        assert calls == []
