"""Domain models for the clusterclaims controller.

This module defines typed data structures for the records the controller
reads and writes, the reconcile request/result pair and the error taxonomy.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypedDict

from constants import (
    ADDON_CONFIG_GROUP,
    ADDON_CONFIG_VERSION,
    KIND_ADDON_CONFIG,
    KIND_MANAGED_CLUSTER,
    MANAGED_CLUSTER_GROUP,
    MANAGED_CLUSTER_VERSION,
)


# =============================================================================
# Enums for constrained values
# =============================================================================


class Action(Enum):
    """What the reconciler did with a downstream record."""

    CREATED = "created"
    DELETED = "deleted"
    SKIPPED = "skipped"


# =============================================================================
# TypedDicts for CRD spec (external data from Kubernetes)
# =============================================================================


class ClusterClaimSpec(TypedDict, total=False):
    """ClusterClaim spec as written by hive."""

    clusterPoolName: str
    namespace: str
    lifetime: str
    subjects: list[dict[str, str]]


class AddonSpec(TypedDict):
    """Single add-on toggle inside a KlusterletAddonConfig spec."""

    enabled: bool


# =============================================================================
# Dataclasses for records and reconcile bookkeeping
# =============================================================================


@dataclass(frozen=True)
class ReconcileRequest:
    """Identifies the ClusterClaim to reconcile."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class ClusterClaim:
    """Snapshot of a ClusterClaim as read from the API server."""

    namespace: str
    name: str
    cluster_name: str = ""
    pool_name: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    deletion_timestamp: str | None = None

    @property
    def is_bound(self) -> bool:
        """True once hive has assigned a cluster to the claim."""
        return bool(self.cluster_name)

    @property
    def is_deleting(self) -> bool:
        return self.deletion_timestamp is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClusterClaim":
        """Create from a Kubernetes object body."""
        metadata = data.get("metadata") or {}
        spec: ClusterClaimSpec = data.get("spec") or {}
        return cls(
            namespace=metadata.get("namespace", ""),
            name=metadata.get("name", ""),
            cluster_name=spec.get("namespace", "") or "",
            pool_name=spec.get("clusterPoolName", "") or "",
            labels=dict(metadata.get("labels") or {}),
            deletion_timestamp=metadata.get("deletionTimestamp"),
        )


@dataclass(frozen=True)
class ManagedCluster:
    """Cluster registration record (cluster-scoped)."""

    name: str
    labels: dict[str, str] = field(default_factory=dict)
    hub_accepts_client: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to a Kubernetes object body."""
        return {
            "apiVersion": f"{MANAGED_CLUSTER_GROUP}/{MANAGED_CLUSTER_VERSION}",
            "kind": KIND_MANAGED_CLUSTER,
            "metadata": {
                "name": self.name,
                "labels": dict(self.labels),
            },
            "spec": {"hubAcceptsClient": self.hub_accepts_client},
        }


@dataclass(frozen=True)
class KlusterletAddonConfig:
    """Per-cluster add-on configuration, living in the cluster's namespace."""

    name: str
    namespace: str
    cluster_labels: dict[str, str] = field(default_factory=dict)
    version: str = "2.2.0"
    addons_enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to a Kubernetes object body."""
        addon: AddonSpec = {"enabled": self.addons_enabled}
        return {
            "apiVersion": f"{ADDON_CONFIG_GROUP}/{ADDON_CONFIG_VERSION}",
            "kind": KIND_ADDON_CONFIG,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
            },
            "spec": {
                "clusterName": self.name,
                "clusterNamespace": self.namespace,
                "clusterLabels": dict(self.cluster_labels),
                "applicationManager": dict(addon),
                "policyController": dict(addon),
                "searchCollector": dict(addon),
                "certPolicyController": dict(addon),
                "iamPolicyController": dict(addon),
                "version": self.version,
            },
        }


@dataclass(frozen=True)
class RecordAction:
    """One mutation (or deliberate non-mutation) performed during reconcile."""

    action: Action
    kind: str
    name: str
    namespace: str = ""

    def __str__(self) -> str:
        target = f"{self.namespace}/{self.name}" if self.namespace else self.name
        return f"{self.action.value} {self.kind} {target}"


@dataclass
class ReconcileResult:
    """Outcome of a single reconcile invocation."""

    requeue: bool = False
    requeue_after: float | None = None
    actions: list[RecordAction] = field(default_factory=list)

    def record(
        self, action: Action, kind: str, name: str, namespace: str = ""
    ) -> None:
        """Append an action to the result."""
        self.actions.append(RecordAction(action, kind, name, namespace))

    def _with(self, action: Action) -> list[RecordAction]:
        return [a for a in self.actions if a.action is action]

    @property
    def created(self) -> list[RecordAction]:
        return self._with(Action.CREATED)

    @property
    def deleted(self) -> list[RecordAction]:
        return self._with(Action.DELETED)

    @property
    def skipped(self) -> list[RecordAction]:
        return self._with(Action.SKIPPED)


# =============================================================================
# Exceptions
# =============================================================================


class OperatorError(Exception):
    """Base exception for operator errors."""

    pass


class ConfigurationError(OperatorError):
    """Invalid or missing configuration."""

    pass


class UnknownKindError(OperatorError):
    """A kind was used that is not registered in the scheme."""

    pass


class KubernetesAPIError(OperatorError):
    """Error communicating with the Kubernetes API (other than not found)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
