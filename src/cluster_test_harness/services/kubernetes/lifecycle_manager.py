"""Namespace-scoped resource lifecycle operations.

Creates, reads, lists, and deletes Deployments and Secrets (and lists the
other watched kinds) in the test environment's namespace. Nothing here
waits: deletion only guarantees the request was accepted, completion is
confirmed separately through the condition watcher.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import yaml

from cluster_test_harness.integrations.kubernetes.exceptions import (
    KubernetesValidationError,
    ResourceCreateError,
    ResourceDeleteError,
    ResourceListError,
)
from cluster_test_harness.integrations.kubernetes.models import (
    DeploymentSummary,
    K8sEntityBase,
    ResourceKind,
    SecretSummary,
)
from cluster_test_harness.services.kubernetes.base import K8sBaseManager, resource_name

# Kinds a manifest file may contain
MANIFEST_KINDS = {
    "Deployment": ResourceKind.DEPLOYMENT,
    "Secret": ResourceKind.SECRET,
}

# Dependents (ReplicaSets, Pods) go before the owner disappears
DELETE_PROPAGATION_POLICY = "Foreground"


class ResourceLifecycleClient(K8sBaseManager):
    """Create/list/delete for the harness's workload resources.

    No retries: every failure is raised as ResourceCreateError,
    ResourceListError, or ResourceDeleteError carrying the translated cause.
    """

    _entity_name = "lifecycle"

    # =========================================================================
    # Create
    # =========================================================================

    def create(self, kind: ResourceKind, body: Any) -> K8sEntityBase:
        """Submit a new object to the namespace.

        Args:
            kind: Kind of the object.
            body: SDK model (e.g. ``V1Deployment``) or manifest dict.

        Returns:
            Payload model of the object as stored by the cluster.

        Raises:
            ResourceCreateError: If the cluster rejects the object or it already exists.
        """
        name = resource_name(body)
        self._log.info("creating_resource", kind=str(kind), name=name, namespace=self.namespace)
        try:
            result = self._client.api_for(kind, "create")(namespace=self.namespace, body=body)
        except Exception as e:
            self._raise_operation_error(ResourceCreateError, e, str(kind), name)
        self._log.info("created_resource", kind=str(kind), name=name, namespace=self.namespace)
        return kind.summary_model.from_k8s_object(result)

    def create_deployment(self, body: Any) -> DeploymentSummary:
        """Create a Deployment in the namespace."""
        return cast(DeploymentSummary, self.create(ResourceKind.DEPLOYMENT, body))

    def create_secret(self, body: Any) -> SecretSummary:
        """Create a Secret in the namespace."""
        return cast(SecretSummary, self.create(ResourceKind.SECRET, body))

    def create_from_manifest(self, path: Path | str) -> list[K8sEntityBase]:
        """Create every Deployment and Secret of a (multi-document) YAML file.

        Args:
            path: Path of the manifest file.

        Returns:
            Payload models of the created objects, in document order.

        Raises:
            ResourceCreateError: If the file cannot be read, holds an
                unsupported kind, or the cluster rejects an object.
        """
        manifest_path = Path(path)
        self._log.debug("loading_manifest", path=str(manifest_path))
        try:
            documents = [
                doc
                for doc in yaml.safe_load_all(manifest_path.read_text(encoding="utf-8"))
                if doc
            ]
        except (OSError, yaml.YAMLError) as e:
            raise ResourceCreateError(
                "manifest",
                str(manifest_path),
                self.namespace,
                original_error=e,
            ) from e

        # Validate every document before the first create
        kinds: list[ResourceKind] = []
        for doc in documents:
            kind_name = doc.get("kind") if isinstance(doc, dict) else None
            kind = MANIFEST_KINDS.get(str(kind_name))
            if kind is None:
                raise ResourceCreateError(
                    str(kind_name or "manifest"),
                    resource_name(doc) if isinstance(doc, dict) else None,
                    self.namespace,
                    original_error=KubernetesValidationError(
                        f"unsupported manifest kind {kind_name!r} in {manifest_path}"
                    ),
                )
            kinds.append(kind)

        return [self.create(kind, doc) for kind, doc in zip(kinds, documents, strict=True)]

    # =========================================================================
    # Read / List
    # =========================================================================

    def get(self, kind: ResourceKind, name: str) -> K8sEntityBase:
        """Read a single object by name.

        Raises:
            KubernetesNotFoundError: If the object does not exist.
        """
        self._log.debug("getting_resource", kind=str(kind), name=name, namespace=self.namespace)
        try:
            result = self._client.api_for(kind, "read")(name=name, namespace=self.namespace)
        except Exception as e:
            self._handle_api_error(e, str(kind), name)
        return kind.summary_model.from_k8s_object(result)

    def list_resources(self, kind: ResourceKind) -> list[K8sEntityBase]:
        """Snapshot of every object of a kind in the namespace, in cluster order.

        Raises:
            ResourceListError: If the list call fails.
        """
        self._log.debug("listing_resources", kind=str(kind), namespace=self.namespace)
        try:
            result = self._client.api_for(kind, "list")(namespace=self.namespace)
        except Exception as e:
            self._raise_operation_error(ResourceListError, e, str(kind))
        items = [kind.summary_model.from_k8s_object(item) for item in result.items]
        self._log.debug("listed_resources", kind=str(kind), count=len(items))
        return items

    # =========================================================================
    # Delete
    # =========================================================================

    def delete(self, kind: ResourceKind, name: str) -> None:
        """Request removal of an object.

        Returns once the request is accepted, not once the object is gone.

        Raises:
            ResourceDeleteError: If the request is rejected.
        """
        from kubernetes.client import V1DeleteOptions

        self._log.info("deleting_resource", kind=str(kind), name=name, namespace=self.namespace)
        try:
            self._client.api_for(kind, "delete")(
                name=name,
                namespace=self.namespace,
                body=V1DeleteOptions(propagation_policy=DELETE_PROPAGATION_POLICY),
            )
        except Exception as e:
            self._raise_operation_error(ResourceDeleteError, e, str(kind), name)
        self._log.info("deleted_resource", kind=str(kind), name=name, namespace=self.namespace)
