"""The namespace-scoped state a test case runs against."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from cluster_test_harness.integrations.kubernetes.config import DEFAULT_NAMESPACE


@dataclass
class TestEnvironment:
    """Shared mutable state of sequential test cases.

    Every operation of the harness is scoped to ``namespace``. Local files a
    test produces (signing keys, rendered manifests) are registered with
    ``track_artifact`` and removed during cleanup together with the cluster
    resources.
    """

    __test__ = False

    namespace: str = DEFAULT_NAMESPACE
    artifacts: list[Path] = field(default_factory=list)

    def track_artifact(self, path: Path | str) -> Path:
        """Register a local file or directory for removal during cleanup."""
        artifact = Path(path)
        if artifact not in self.artifacts:
            self.artifacts.append(artifact)
        return artifact

    def remove_artifacts(self) -> list[OSError]:
        """Remove every tracked artifact.

        Returns:
            The errors of artifacts that could not be removed; those stay
            tracked so a later cleanup retries them.
        """
        errors: list[OSError] = []
        remaining: list[Path] = []
        for artifact in self.artifacts:
            try:
                if artifact.is_dir():
                    shutil.rmtree(artifact)
                else:
                    artifact.unlink(missing_ok=True)
            except OSError as e:
                errors.append(e)
                remaining.append(artifact)
        self.artifacts = remaining
        return errors
