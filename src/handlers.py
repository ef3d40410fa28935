"""Kopf handlers for ClusterClaim resources."""

import logging
import sys
import time
from pathlib import Path
from typing import Any

# Add src directory to path for imports when run as script by Kopf
_src_dir = Path(__file__).parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import kopf
from prometheus_client import start_http_server

from constants import (
    CLAIM_GROUP,
    CLAIM_PLURAL,
    CLAIM_VERSION,
    OPERATOR_FINALIZER,
)
from models import (
    ConfigurationError,
    ReconcileRequest,
    ReconcileResult,
    UnknownKindError,
)
from state import state, get_config, get_reconciler
from metrics import (
    MANAGED_RECORD_ACTIONS,
    RECONCILE_DURATION,
    RECONCILE_IN_PROGRESS,
    RECONCILE_TOTAL,
    init_metrics,
    set_operator_info,
)

logger = logging.getLogger(__name__)

# Operator version
OPERATOR_VERSION = "0.1.0"

PERSISTENCE_PREFIX = "clusterclaims.open-cluster-management.io"


def _record_result(body: kopf.Body, result: ReconcileResult) -> None:
    """Count the actions of a reconcile and post them as events on the claim."""
    for action in result.actions:
        MANAGED_RECORD_ACTIONS.labels(
            kind=action.kind, action=action.action.value
        ).inc()
    for action in result.created + result.deleted:
        kopf.info(body, reason=action.action.value.capitalize(), message=str(action))


def reconcile_claim(
    trigger: str,
    namespace: str,
    name: str,
    body: kopf.Body,
) -> ReconcileResult:
    """Run the reconciler for one claim and translate failures for kopf.

    Raises:
        kopf.PermanentError: On errors that retrying cannot fix
        kopf.TemporaryError: On any other failure, or when a requeue is requested
    """
    config = get_config()
    request = ReconcileRequest(namespace=namespace, name=name)
    logger.debug(f"Reconciling ClusterClaim {request} ({trigger})")
    start_time = time.monotonic()
    RECONCILE_IN_PROGRESS.inc()

    try:
        result = get_reconciler().reconcile(request)
    except (UnknownKindError, ConfigurationError) as e:
        logger.error(f"Cannot reconcile ClusterClaim {request}: {e}")
        RECONCILE_TOTAL.labels(trigger=trigger, status="permanent_error").inc()
        raise kopf.PermanentError(str(e)) from e
    except Exception as e:
        logger.error(f"Failed to reconcile ClusterClaim {request}: {e}")
        RECONCILE_TOTAL.labels(trigger=trigger, status="error").inc()
        kopf.warn(body, reason="ReconcileFailed", message=str(e)[:200])
        raise kopf.TemporaryError(
            f"Reconcile failed: {e}", delay=config.retry_delay
        ) from e
    finally:
        RECONCILE_IN_PROGRESS.dec()
        RECONCILE_DURATION.labels(trigger=trigger).observe(
            time.monotonic() - start_time
        )

    RECONCILE_TOTAL.labels(trigger=trigger, status="success").inc()
    _record_result(body, result)

    if result.actions:
        logger.info(
            f"Reconciled ClusterClaim {request}: "
            + ", ".join(str(a) for a in result.actions)
        )

    if result.requeue:
        raise kopf.TemporaryError(
            f"Requeue requested for {request}",
            delay=result.requeue_after or config.retry_delay,
        )
    return result


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure operator settings on startup."""
    config = get_config()
    logging.getLogger().setLevel(config.log_level)

    # Reduce logging noise
    settings.posting.level = logging.WARNING
    settings.persistence.finalizer = OPERATOR_FINALIZER
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(
        prefix=PERSISTENCE_PREFIX
    )
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
        prefix=PERSISTENCE_PREFIX
    )
    settings.networking.request_timeout = config.request_timeout

    # Leader election via kopf peering; standalone unless enabled
    settings.peering.name = config.leader_election_id
    settings.peering.clusterwide = not config.watch_namespace
    settings.peering.standalone = not config.enable_leader_election
    settings.peering.mandatory = config.enable_leader_election

    # Start Prometheus metrics server
    try:
        start_http_server(config.metrics_port)
        logger.info("Prometheus metrics server started on port %d", config.metrics_port)
    except OSError as e:
        logger.warning(
            "Failed to start metrics server on port %d: %s", config.metrics_port, e
        )

    init_metrics()
    set_operator_info(OPERATOR_VERSION, config.watch_namespace)

    logger.info("ClusterClaims controller started (version %s)", OPERATOR_VERSION)


@kopf.on.cleanup()
def cleanup(**_: Any) -> None:
    """Clean up resources on operator shutdown."""
    logger.info("ClusterClaims controller shutting down")
    state.close()


@kopf.on.resume(CLAIM_GROUP, CLAIM_VERSION, CLAIM_PLURAL)
def resume_claim(namespace: str, name: str, body: kopf.Body, **_: Any) -> None:
    """Reconcile claims that already existed when the operator started."""
    reconcile_claim("resume", namespace, name, body)


@kopf.on.create(CLAIM_GROUP, CLAIM_VERSION, CLAIM_PLURAL)
def create_claim(namespace: str, name: str, body: kopf.Body, **_: Any) -> None:
    """Handle ClusterClaim creation."""
    logger.info(f"ClusterClaim created: {namespace}/{name}")
    reconcile_claim("create", namespace, name, body)


@kopf.on.update(CLAIM_GROUP, CLAIM_VERSION, CLAIM_PLURAL)
def update_claim(namespace: str, name: str, body: kopf.Body, **_: Any) -> None:
    """Handle ClusterClaim updates, including hive binding the claim to a cluster."""
    reconcile_claim("update", namespace, name, body)


@kopf.on.delete(CLAIM_GROUP, CLAIM_VERSION, CLAIM_PLURAL, optional=True)
def delete_claim(namespace: str, name: str, body: kopf.Body, **_: Any) -> None:
    """Handle ClusterClaim deletion.

    Optional, so no finalizer is added: the handler runs while another
    finalizer (hive's) keeps the claim around with a deletion timestamp.
    """
    logger.info(f"ClusterClaim deletion requested: {namespace}/{name}")
    reconcile_claim("delete", namespace, name, body)


def main() -> None:
    """Entry point for running the operator."""
    config = get_config()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting ClusterClaims controller...")
    kopf.run(
        clusterwide=not config.watch_namespace,
        namespaces=[config.watch_namespace] if config.watch_namespace else [],
        standalone=not config.enable_leader_election,
        peering_name=config.leader_election_id,
    )


if __name__ == "__main__":
    main()
