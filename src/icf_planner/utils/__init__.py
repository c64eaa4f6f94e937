# File: src/icf_planner/utils/__init__.py

"""Shared utilities: 2D geometry helpers and logging configuration."""

from .logging_config import IcfPlannerLogger, get_logger

__all__ = [
    "IcfPlannerLogger",
    "get_logger",
]
