"""Version information for cluster_test_harness."""

__version__ = "0.1.0"
