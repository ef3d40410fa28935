"""Registration table mapping record kinds to their API coordinates.

The table is built once at bootstrap and handed to the object store, so the
reconciler only ever talks in kind names.
"""

from dataclasses import dataclass

from constants import (
    ADDON_CONFIG_GROUP,
    ADDON_CONFIG_PLURAL,
    ADDON_CONFIG_VERSION,
    CLAIM_GROUP,
    CLAIM_PLURAL,
    CLAIM_VERSION,
    KIND_ADDON_CONFIG,
    KIND_CLUSTER_CLAIM,
    KIND_MANAGED_CLUSTER,
    MANAGED_CLUSTER_GROUP,
    MANAGED_CLUSTER_PLURAL,
    MANAGED_CLUSTER_VERSION,
)
from models import UnknownKindError


@dataclass(frozen=True)
class ResourceKind:
    """API coordinates of a custom resource kind."""

    kind: str
    group: str
    version: str
    plural: str
    namespaced: bool = True


class Scheme:
    """Kind name -> ResourceKind lookup table."""

    def __init__(self, kinds: list[ResourceKind] | None = None) -> None:
        self._kinds: dict[str, ResourceKind] = {}
        for resource_kind in kinds or []:
            self.register(resource_kind)

    def register(self, resource_kind: ResourceKind) -> None:
        """Add a kind to the table, replacing any earlier registration."""
        self._kinds[resource_kind.kind] = resource_kind

    def lookup(self, kind: str) -> ResourceKind:
        """Return the coordinates for a kind.

        Raises:
            UnknownKindError: If the kind was never registered
        """
        try:
            return self._kinds[kind]
        except KeyError:
            raise UnknownKindError(f"Kind {kind} is not registered") from None

    def __contains__(self, kind: object) -> bool:
        return kind in self._kinds

    def __repr__(self) -> str:
        return f"Scheme(kinds={sorted(self._kinds)})"


def build_default_scheme() -> Scheme:
    """Build the scheme with every kind the controller touches."""
    return Scheme(
        [
            ResourceKind(
                KIND_CLUSTER_CLAIM, CLAIM_GROUP, CLAIM_VERSION, CLAIM_PLURAL
            ),
            ResourceKind(
                KIND_MANAGED_CLUSTER,
                MANAGED_CLUSTER_GROUP,
                MANAGED_CLUSTER_VERSION,
                MANAGED_CLUSTER_PLURAL,
                namespaced=False,
            ),
            ResourceKind(
                KIND_ADDON_CONFIG,
                ADDON_CONFIG_GROUP,
                ADDON_CONFIG_VERSION,
                ADDON_CONFIG_PLURAL,
            ),
        ]
    )
