"""
Logging configuration for the ICF planner.

This module provides the logging setup used by the command line entry point,
including a custom TRACE level for per-segment and per-piece diagnostics.
Library modules never configure logging themselves; they only call
``logging.getLogger(__name__)``.
"""

import logging
import os
import sys
from datetime import datetime
from typing import Optional


class IcfPlannerLogger:
    """
    Configures logging for the ICF planner with multiple levels.

    Supports:
    - Standard levels (CRITICAL, ERROR, WARNING, INFO, DEBUG)
    - Custom TRACE level for extremely detailed diagnostics
    - Optional file output next to console output
    """

    # Define custom TRACE level (between DEBUG and NOTSET)
    TRACE_LEVEL = 5
    logging.addLevelName(TRACE_LEVEL, "TRACE")

    @staticmethod
    def _add_trace_method():
        """Add the TRACE method to the Logger class if not already present."""
        if not hasattr(logging.Logger, 'trace'):
            def trace(self, message, *args, **kwargs):
                """
                Log a message with level TRACE.

                This level provides extremely detailed tracing information beyond DEBUG.
                """
                if self.isEnabledFor(IcfPlannerLogger.TRACE_LEVEL):
                    self._log(IcfPlannerLogger.TRACE_LEVEL, message, args, **kwargs)
            logging.Logger.trace = trace

    @staticmethod
    def configure(
        debug_mode: bool = False,
        log_dir: Optional[str] = None,
        trace: bool = False,
    ) -> Optional[str]:
        """
        Configure the logging system for the entire application.

        Args:
            debug_mode: If True, sets DEBUG level for all loggers
            log_dir: Directory to store a timestamped log file (None disables file output)
            trace: If True, enables the TRACE level (implies debug_mode)

        Returns:
            Path to the created log file, or None when file output is disabled
        """
        IcfPlannerLogger._add_trace_method()

        if trace:
            level = IcfPlannerLogger.TRACE_LEVEL
        elif debug_mode:
            level = logging.DEBUG
        else:
            level = logging.INFO

        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        # Clear any existing handlers
        if root_logger.handlers:
            root_logger.handlers.clear()

        log_file = None
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = os.path.join(log_dir, f"icf_planner_{timestamp}.log")

            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))
            file_handler.setLevel(level)
            root_logger.addHandler(file_handler)

        # Console output goes to stderr so stdout stays free for JSON results
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            logging.Formatter('%(name)s - %(levelname)s: %(message)s')
        )
        console_handler.setLevel(level)
        root_logger.addHandler(console_handler)

        return log_file

    @staticmethod
    def get_logger(name: str, level: Optional[int] = None):
        """
        Get a configured logger for a specific module.

        Args:
            name: Logger name, typically __name__
            level: Optional specific level for this logger

        Returns:
            A configured logger
        """
        IcfPlannerLogger._add_trace_method()
        logger = logging.getLogger(name)
        if level:
            logger.setLevel(level)
        return logger


# For direct import convenience
def get_logger(name: str, level: Optional[int] = None):
    """
    Get a configured logger for a specific module.

    Convenience function that delegates to IcfPlannerLogger.get_logger.
    """
    return IcfPlannerLogger.get_logger(name, level)
