"""Tests for the ClusterClaim reconciler."""

import pytest

from conftest import (
    CC_NAME,
    CC_NAMESPACE,
    CLUSTER01,
    make_addon_config,
    make_claim,
    make_managed_cluster,
)
from constants import KIND_ADDON_CONFIG, KIND_CLUSTER_CLAIM, KIND_MANAGED_CLUSTER
from models import (
    Action,
    ClusterClaim,
    KubernetesAPIError,
    ReconcileRequest,
)
from reconciler import (
    ClusterClaimsReconciler,
    desired_addon_config,
    desired_managed_cluster,
)

REQUEST = ReconcileRequest(namespace=CC_NAMESPACE, name=CC_NAME)


class TestDesiredRecords:
    """Tests for the desired-state builders."""

    def test_managed_cluster_labels(self):
        claim = ClusterClaim.from_dict(make_claim())
        mc = desired_managed_cluster(claim)

        assert mc.name == CLUSTER01
        assert mc.labels == {
            "name": CC_NAME,
            "vendor": "OpenShift",
            "usage": "production",
        }

    def test_managed_cluster_fixed_labels_win(self):
        body = make_claim()
        body["metadata"]["labels"] = {"vendor": "Other", "name": "x", "env": "dev"}
        mc = desired_managed_cluster(ClusterClaim.from_dict(body))

        assert mc.labels["vendor"] == "OpenShift"
        assert mc.labels["name"] == CC_NAME
        assert mc.labels["env"] == "dev"

    def test_addon_config(self):
        claim = ClusterClaim.from_dict(make_claim())
        kac = desired_addon_config(claim, "2.3.0")

        assert kac.name == CLUSTER01
        assert kac.namespace == CLUSTER01
        assert kac.cluster_labels == {"vendor": "OpenShift"}
        assert kac.version == "2.3.0"


class TestReconcileBoundClaim:
    """A bound claim that is not being deleted gets its records created."""

    def test_creates_records(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim())

        result = reconciler.reconcile(REQUEST)

        mc = store.get(KIND_MANAGED_CLUSTER, "", CLUSTER01)
        assert mc is not None
        assert mc["metadata"]["labels"]["name"] == CC_NAME
        assert mc["metadata"]["labels"]["vendor"] == "OpenShift"
        assert mc["metadata"]["labels"]["usage"] == "production"
        assert mc["spec"]["hubAcceptsClient"] is True

        kac = store.get(KIND_ADDON_CONFIG, CLUSTER01, CLUSTER01)
        assert kac is not None
        assert kac["spec"]["clusterLabels"]["vendor"] == "OpenShift"
        assert kac["spec"]["clusterName"] == CLUSTER01
        assert kac["spec"]["clusterNamespace"] == CLUSTER01

        assert [a.kind for a in result.created] == [
            KIND_MANAGED_CLUSTER,
            KIND_ADDON_CONFIG,
        ]
        assert result.requeue is False

    def test_existing_records_left_alone(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim())
        store.add(KIND_MANAGED_CLUSTER, make_managed_cluster())
        store.add(KIND_ADDON_CONFIG, make_addon_config())

        result = reconciler.reconcile(REQUEST)

        assert result.actions == []
        assert store.mutations() == []
        # No labels were added to the pre-existing registration
        mc = store.get(KIND_MANAGED_CLUSTER, "", CLUSTER01)
        assert "labels" not in mc["metadata"]

    def test_creates_only_missing_record(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim())
        store.add(KIND_MANAGED_CLUSTER, make_managed_cluster())

        result = reconciler.reconcile(REQUEST)

        assert store.mutations() == [
            ("create", KIND_ADDON_CONFIG, CLUSTER01, CLUSTER01)
        ]
        assert len(result.created) == 1

    def test_idempotent(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim())

        reconciler.reconcile(REQUEST)
        objects_after_first = dict(store.objects)
        mutations_after_first = len(store.mutations())

        result = reconciler.reconcile(REQUEST)

        assert result.actions == []
        assert store.objects == objects_after_first
        assert len(store.mutations()) == mutations_after_first

    def test_uses_configured_addon_version(self, store):
        store.add(KIND_CLUSTER_CLAIM, make_claim())
        ClusterClaimsReconciler(store, addon_version="2.4.0").reconcile(REQUEST)

        kac = store.get(KIND_ADDON_CONFIG, CLUSTER01, CLUSTER01)
        assert kac["spec"]["version"] == "2.4.0"


class TestReconcileNoop:
    """Requests that must not touch any downstream record."""

    def test_missing_claim(self, store, reconciler):
        result = reconciler.reconcile(REQUEST)

        assert result.actions == []
        assert store.mutations() == []

    def test_unbound_claim(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim(cluster_name=""))

        result = reconciler.reconcile(REQUEST)

        assert result.actions == []
        assert store.mutations() == []
        assert store.calls == [("get", KIND_CLUSTER_CLAIM, CC_NAMESPACE, CC_NAME)]

    def test_unbound_deleting_claim(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim(cluster_name="", deleting=True))

        reconciler.reconcile(REQUEST)

        assert store.mutations() == []


class TestReconcileDeletingClaim:
    """A claim with a deletion timestamp tears down its records."""

    def test_deletes_records(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim(deleting=True))
        store.add(KIND_MANAGED_CLUSTER, make_managed_cluster())
        store.add(KIND_ADDON_CONFIG, make_addon_config())

        result = reconciler.reconcile(REQUEST)

        assert store.get(KIND_MANAGED_CLUSTER, "", CLUSTER01) is None
        assert store.get(KIND_ADDON_CONFIG, CLUSTER01, CLUSTER01) is None
        assert [a.kind for a in result.deleted] == [
            KIND_MANAGED_CLUSTER,
            KIND_ADDON_CONFIG,
        ]

    def test_skips_records_already_terminating(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim(deleting=True))
        store.add(KIND_MANAGED_CLUSTER, make_managed_cluster(deleting=True))
        store.add(KIND_ADDON_CONFIG, make_addon_config(deleting=True))

        result = reconciler.reconcile(REQUEST)

        assert store.get(KIND_MANAGED_CLUSTER, "", CLUSTER01) is not None
        assert store.get(KIND_ADDON_CONFIG, CLUSTER01, CLUSTER01) is not None
        assert store.mutations() == []
        assert [a.action for a in result.skipped] == [Action.SKIPPED, Action.SKIPPED]

    def test_mixed_terminating_state(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim(deleting=True))
        store.add(KIND_MANAGED_CLUSTER, make_managed_cluster(deleting=True))
        store.add(KIND_ADDON_CONFIG, make_addon_config())

        reconciler.reconcile(REQUEST)

        assert store.mutations() == [
            ("delete", KIND_ADDON_CONFIG, CLUSTER01, CLUSTER01)
        ]

    def test_records_absent(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim(deleting=True))

        result = reconciler.reconcile(REQUEST)

        assert result.actions == []
        assert store.mutations() == []

    def test_never_creates_while_deleting(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim(deleting=True))

        reconciler.reconcile(REQUEST)

        assert store.get(KIND_MANAGED_CLUSTER, "", CLUSTER01) is None
        assert store.get(KIND_ADDON_CONFIG, CLUSTER01, CLUSTER01) is None

    def test_idempotent(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim(deleting=True))
        store.add(KIND_MANAGED_CLUSTER, make_managed_cluster())
        store.add(KIND_ADDON_CONFIG, make_addon_config())

        reconciler.reconcile(REQUEST)
        deletes = [c for c in store.mutations() if c[0] == "delete"]

        result = reconciler.reconcile(REQUEST)

        assert result.actions == []
        assert [c for c in store.mutations() if c[0] == "delete"] == deletes

    def test_delete_race_not_an_error(self, store, reconciler, monkeypatch):
        store.add(KIND_CLUSTER_CLAIM, make_claim(deleting=True))
        store.add(KIND_MANAGED_CLUSTER, make_managed_cluster())

        # Someone else removes the object between our get and our delete
        monkeypatch.setattr(store, "delete", lambda kind, namespace, name: False)

        result = reconciler.reconcile(REQUEST)

        assert result.deleted == []


class TestReconcileErrors:
    """Store failures other than not-found propagate unchanged."""

    def test_claim_get_error(self, store, reconciler):
        error = KubernetesAPIError("boom", status=500)
        store.errors[("get", KIND_CLUSTER_CLAIM)] = error

        with pytest.raises(KubernetesAPIError) as exc_info:
            reconciler.reconcile(REQUEST)

        assert exc_info.value is error

    def test_record_get_error(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim())
        store.errors[("get", KIND_MANAGED_CLUSTER)] = KubernetesAPIError("boom", 503)

        with pytest.raises(KubernetesAPIError):
            reconciler.reconcile(REQUEST)

        assert store.mutations() == []

    def test_create_error(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim())
        store.errors[("create", KIND_ADDON_CONFIG)] = KubernetesAPIError("denied", 403)

        with pytest.raises(KubernetesAPIError):
            reconciler.reconcile(REQUEST)

        # The registration created before the failure stays in place
        assert store.get(KIND_MANAGED_CLUSTER, "", CLUSTER01) is not None

    def test_delete_error(self, store, reconciler):
        store.add(KIND_CLUSTER_CLAIM, make_claim(deleting=True))
        store.add(KIND_MANAGED_CLUSTER, make_managed_cluster())
        store.add(KIND_ADDON_CONFIG, make_addon_config())
        store.errors[("delete", KIND_MANAGED_CLUSTER)] = KubernetesAPIError("boom", 500)

        with pytest.raises(KubernetesAPIError):
            reconciler.reconcile(REQUEST)

        assert store.get(KIND_ADDON_CONFIG, CLUSTER01, CLUSTER01) is not None

    def test_timeout_propagates(self, store, reconciler):
        store.errors[("get", KIND_CLUSTER_CLAIM)] = TimeoutError("deadline exceeded")

        with pytest.raises(TimeoutError):
            reconciler.reconcile(REQUEST)

        assert len(store.calls) == 1
