"""ClusterClaim reconciler.

Keeps the ManagedCluster and KlusterletAddonConfig of a claimed cluster in
line with its ClusterClaim. Every call recomputes desired state from a fresh
read of the claim; nothing is remembered between calls.
"""

import logging
from collections.abc import Callable
from typing import Any

from constants import (
    KIND_ADDON_CONFIG,
    KIND_CLUSTER_CLAIM,
    KIND_MANAGED_CLUSTER,
    LABEL_NAME,
    LABEL_VENDOR,
    VENDOR_OPENSHIFT,
)
from models import (
    Action,
    ClusterClaim,
    KlusterletAddonConfig,
    ManagedCluster,
    ReconcileRequest,
    ReconcileResult,
)
from object_store import ObjectStore
from utils import is_deleting, merge_labels

logger = logging.getLogger(__name__)


def desired_managed_cluster(claim: ClusterClaim) -> ManagedCluster:
    """Build the ManagedCluster for a bound claim.

    The claim's labels are copied over; ``name`` and ``vendor`` always take
    the controller's values.
    """
    labels = merge_labels(
        claim.labels,
        {LABEL_NAME: claim.name, LABEL_VENDOR: VENDOR_OPENSHIFT},
    )
    return ManagedCluster(name=claim.cluster_name, labels=labels)


def desired_addon_config(
    claim: ClusterClaim, addon_version: str = "2.2.0"
) -> KlusterletAddonConfig:
    """Build the KlusterletAddonConfig for a bound claim."""
    return KlusterletAddonConfig(
        name=claim.cluster_name,
        namespace=claim.cluster_name,
        cluster_labels={LABEL_VENDOR: VENDOR_OPENSHIFT},
        version=addon_version,
    )


class ClusterClaimsReconciler:
    """Drives downstream records from the state of one ClusterClaim."""

    def __init__(self, store: ObjectStore, addon_version: str = "2.2.0") -> None:
        """Initialize the reconciler.

        Args:
            store: Object store used for every read and write
            addon_version: Version written into new KlusterletAddonConfigs
        """
        self.store = store
        self.addon_version = addon_version

    def reconcile(self, request: ReconcileRequest) -> ReconcileResult:
        """Converge the records belonging to the claim named by the request.

        A missing or unbound claim is a no-op. Errors from the store other
        than not-found propagate unchanged.
        """
        result = ReconcileResult()

        body = self.store.get(KIND_CLUSTER_CLAIM, request.namespace, request.name)
        if body is None:
            logger.debug(f"ClusterClaim {request} not found, nothing to do")
            return result

        claim = ClusterClaim.from_dict(body)
        if not claim.is_bound:
            logger.debug(f"ClusterClaim {request} is not bound to a cluster yet")
            return result

        cluster = claim.cluster_name
        if claim.is_deleting:
            logger.info(f"ClusterClaim {request} is being deleted, removing records for {cluster}")
            self._delete_unless_terminating(KIND_MANAGED_CLUSTER, "", cluster, result)
            self._delete_unless_terminating(KIND_ADDON_CONFIG, cluster, cluster, result)
            return result

        self._ensure(
            KIND_MANAGED_CLUSTER,
            "",
            cluster,
            lambda: desired_managed_cluster(claim).to_dict(),
            result,
        )
        self._ensure(
            KIND_ADDON_CONFIG,
            cluster,
            cluster,
            lambda: desired_addon_config(claim, self.addon_version).to_dict(),
            result,
        )
        return result

    def _ensure(
        self,
        kind: str,
        namespace: str,
        name: str,
        build: Callable[[], dict[str, Any]],
        result: ReconcileResult,
    ) -> None:
        """Create the object if it does not exist. Existing objects are left as they are."""
        if self.store.get(kind, namespace, name) is not None:
            logger.debug(f"{kind} {name} already exists")
            return

        self.store.create(kind, build())
        result.record(Action.CREATED, kind, name, namespace)
        logger.info(f"Created {kind} {name}")

    def _delete_unless_terminating(
        self,
        kind: str,
        namespace: str,
        name: str,
        result: ReconcileResult,
    ) -> None:
        """Delete the object unless it is absent or already being deleted."""
        obj = self.store.get(kind, namespace, name)
        if obj is None:
            logger.debug(f"{kind} {name} not found, nothing to delete")
            return

        if is_deleting(obj):
            logger.info(f"Skipping delete of {kind} {name}, already terminating")
            result.record(Action.SKIPPED, kind, name, namespace)
            return

        if self.store.delete(kind, namespace, name):
            result.record(Action.DELETED, kind, name, namespace)
            logger.info(f"Deleted {kind} {name}")
        else:
            logger.debug(f"{kind} {name} disappeared before it could be deleted")
