"""Prometheus metrics for the clusterclaims controller."""

from prometheus_client import Counter, Histogram, Gauge, Info

# Reconciliation metrics
RECONCILE_TOTAL = Counter(
    "clusterclaims_controller_reconcile_total",
    "Total number of reconciliations",
    ["trigger", "status"],
)

RECONCILE_DURATION = Histogram(
    "clusterclaims_controller_reconcile_duration_seconds",
    "Time spent in reconciliation",
    ["trigger"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

RECONCILE_IN_PROGRESS = Gauge(
    "clusterclaims_controller_reconcile_in_progress",
    "Number of reconciliations currently in progress",
)

# Kubernetes API metrics
KUBE_API_CALLS = Counter(
    "clusterclaims_controller_kube_api_calls_total",
    "Total number of Kubernetes API calls",
    ["kind", "operation", "status"],
)

KUBE_API_DURATION = Histogram(
    "clusterclaims_controller_kube_api_duration_seconds",
    "Time spent in Kubernetes API calls",
    ["kind", "operation"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

RATE_LIMIT_WAIT_SECONDS = Histogram(
    "clusterclaims_controller_rate_limit_wait_seconds",
    "Time spent waiting for rate limit slot",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

# Downstream record metrics
MANAGED_RECORD_ACTIONS = Counter(
    "clusterclaims_controller_managed_record_actions_total",
    "Actions taken on ManagedCluster and KlusterletAddonConfig records",
    ["kind", "action"],
)

# Operator info
OPERATOR_INFO = Info(
    "clusterclaims_controller",
    "Information about the clusterclaims controller",
)

TRIGGERS = ["resume", "create", "update", "delete"]
STATUSES = ["success", "error", "permanent_error"]
KUBE_OPERATIONS = ["get", "create", "delete"]
KUBE_STATUSES = ["success", "not_found", "error"]
RECORD_KINDS = ["ManagedCluster", "KlusterletAddonConfig"]
RECORD_ACTIONS = ["created", "deleted", "skipped"]


def set_operator_info(version: str, watch_namespace: str) -> None:
    """Set operator info labels."""
    OPERATOR_INFO.info(
        {"version": version, "watch_namespace": watch_namespace or "*"}
    )


def init_metrics() -> None:
    """Initialize all metrics with zero values.

    Prometheus metrics with labels don't appear until used.
    This ensures all metrics are visible immediately at startup.
    """
    RECONCILE_IN_PROGRESS.set(0)

    for trigger in TRIGGERS:
        RECONCILE_DURATION.labels(trigger=trigger)
        for status in STATUSES:
            RECONCILE_TOTAL.labels(trigger=trigger, status=status)

    for kind in ["ClusterClaim", *RECORD_KINDS]:
        for operation in KUBE_OPERATIONS:
            KUBE_API_DURATION.labels(kind=kind, operation=operation)
            for status in KUBE_STATUSES:
                KUBE_API_CALLS.labels(kind=kind, operation=operation, status=status)

    for kind in RECORD_KINDS:
        for action in RECORD_ACTIONS:
            MANAGED_RECORD_ACTIONS.labels(kind=kind, action=action)
