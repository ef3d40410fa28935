"""Shared fixtures: an in-memory object store and claim builders."""

import copy
from typing import Any

import pytest

from constants import KIND_ADDON_CONFIG, KIND_CLUSTER_CLAIM, KIND_MANAGED_CLUSTER
from reconciler import ClusterClaimsReconciler
from scheme import build_default_scheme

CC_NAME = "my-clusterclaim"
CC_NAMESPACE = "my-pool"
CLUSTER01 = "cluster01"
DELETION_TIMESTAMP = "2024-01-01T00:00:00Z"


class InMemoryObjectStore:
    """ObjectStore keeping objects in a dict, keyed by (kind, namespace, name).

    Cluster-scoped kinds are stored under an empty namespace. Every call is
    logged in ``calls`` so tests can assert on side effects.
    """

    def __init__(self) -> None:
        self.scheme = build_default_scheme()
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str, str]] = []
        self.errors: dict[tuple[str, str], Exception] = {}

    def _key(self, kind: str, namespace: str, name: str) -> tuple[str, str, str]:
        if not self.scheme.lookup(kind).namespaced:
            namespace = ""
        return (kind, namespace, name)

    def _maybe_fail(self, operation: str, kind: str) -> None:
        error = self.errors.get((operation, kind))
        if error is not None:
            raise error

    def add(self, kind: str, body: dict[str, Any]) -> None:
        """Seed an object without recording a call."""
        metadata = body["metadata"]
        key = self._key(kind, metadata.get("namespace", ""), metadata["name"])
        self.objects[key] = copy.deepcopy(body)

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        self.calls.append(("get", kind, namespace, name))
        self._maybe_fail("get", kind)
        obj = self.objects.get(self._key(kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def create(self, kind: str, body: dict[str, Any]) -> dict[str, Any]:
        metadata = body["metadata"]
        namespace = metadata.get("namespace", "")
        self.calls.append(("create", kind, namespace, metadata["name"]))
        self._maybe_fail("create", kind)
        key = self._key(kind, namespace, metadata["name"])
        if key in self.objects:
            raise RuntimeError(f"{kind} {metadata['name']} already exists")
        self.objects[key] = copy.deepcopy(body)
        return copy.deepcopy(body)

    def delete(self, kind: str, namespace: str, name: str) -> bool:
        self.calls.append(("delete", kind, namespace, name))
        self._maybe_fail("delete", kind)
        return self.objects.pop(self._key(kind, namespace, name), None) is not None

    def mutations(self) -> list[tuple[str, str, str, str]]:
        return [c for c in self.calls if c[0] != "get"]


def make_claim(
    namespace: str = CC_NAMESPACE,
    name: str = CC_NAME,
    cluster_name: str = CLUSTER01,
    deleting: bool = False,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "labels": {"usage": "production"},
    }
    if deleting:
        metadata["deletionTimestamp"] = DELETION_TIMESTAMP
    return {
        "apiVersion": "hive.openshift.io/v1",
        "kind": KIND_CLUSTER_CLAIM,
        "metadata": metadata,
        "spec": {"clusterPoolName": "make-believe", "namespace": cluster_name},
    }


def make_managed_cluster(name: str = CLUSTER01, deleting: bool = False) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name}
    if deleting:
        metadata["deletionTimestamp"] = DELETION_TIMESTAMP
    return {"kind": KIND_MANAGED_CLUSTER, "metadata": metadata}


def make_addon_config(name: str = CLUSTER01, deleting: bool = False) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name, "namespace": name}
    if deleting:
        metadata["deletionTimestamp"] = DELETION_TIMESTAMP
    return {"kind": KIND_ADDON_CONFIG, "metadata": metadata}


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def reconciler(store: InMemoryObjectStore) -> ClusterClaimsReconciler:
    return ClusterClaimsReconciler(store)
