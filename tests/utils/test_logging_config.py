# File: tests/utils/test_logging_config.py

"""Tests for the command line logging setup."""

import logging
import os

from icf_planner.utils.logging_config import IcfPlannerLogger, get_logger


class TestConfigure:

    def test_default_level_is_info(self, restore_root_logging):
        log_file = IcfPlannerLogger.configure()
        assert log_file is None
        assert restore_root_logging.level == logging.INFO
        assert len(restore_root_logging.handlers) == 1

    def test_debug_mode(self, restore_root_logging):
        IcfPlannerLogger.configure(debug_mode=True)
        assert restore_root_logging.level == logging.DEBUG

    def test_trace_reaches_console(self, restore_root_logging):
        IcfPlannerLogger.configure(trace=True)
        assert restore_root_logging.level == IcfPlannerLogger.TRACE_LEVEL
        assert all(
            h.level == IcfPlannerLogger.TRACE_LEVEL for h in restore_root_logging.handlers
        )
        assert logging.getLevelName(IcfPlannerLogger.TRACE_LEVEL) == "TRACE"

    def test_log_file_written(self, restore_root_logging, tmp_path):
        log_file = IcfPlannerLogger.configure(log_dir=str(tmp_path / "logs"))
        assert log_file is not None
        logging.getLogger("icf_planner.test").info("hello from the planner")
        for handler in restore_root_logging.handlers:
            handler.flush()
        assert os.path.exists(log_file)
        with open(log_file, encoding="utf-8") as handle:
            assert "hello from the planner" in handle.read()

    def test_reconfigure_replaces_handlers(self, restore_root_logging):
        IcfPlannerLogger.configure()
        IcfPlannerLogger.configure(debug_mode=True)
        assert len(restore_root_logging.handlers) == 1


class TestGetLogger:

    def test_trace_method_added(self):
        logger = get_logger("icf_planner.trace_test")
        assert hasattr(logger, "trace")

    def test_level_applied(self):
        logger = get_logger("icf_planner.level_test", logging.WARNING)
        assert logger.level == logging.WARNING
