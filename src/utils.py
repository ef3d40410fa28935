"""Utility functions for the clusterclaims controller."""

from typing import Any


def is_deleting(obj: dict[str, Any] | None) -> bool:
    """Check whether a Kubernetes object carries a deletion timestamp."""
    if not obj:
        return False
    return bool((obj.get("metadata") or {}).get("deletionTimestamp"))


def merge_labels(*label_sets: dict[str, str] | None) -> dict[str, str]:
    """Merge label dicts left to right; later sets win on conflicting keys.

    Example: merge_labels({"a": "1"}, None, {"a": "2", "b": "3"})
    -> {"a": "2", "b": "3"}
    """
    merged: dict[str, str] = {}
    for labels in label_sets:
        if labels:
            merged.update(labels)
    return merged


def object_ref(obj: dict[str, Any]) -> str:
    """Format an object body as 'namespace/name', or 'name' if cluster-scoped."""
    metadata = obj.get("metadata") or {}
    name = metadata.get("name", "")
    namespace = metadata.get("namespace")
    return f"{namespace}/{name}" if namespace else name
