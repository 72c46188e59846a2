"""Kubernetes cluster test harness.

Provisions workload resources in a dedicated namespace, waits on watch
streams for readiness, failure, or deletion, and tears everything down
again between test cases.
"""

from cluster_test_harness.__version__ import __version__

__all__ = ["__version__"]
