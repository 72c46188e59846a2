"""Logging configuration for cluster_test_harness."""

from cluster_test_harness.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
