"""Kind-parameterised access to Kubernetes custom objects.

The reconciler depends only on the ``ObjectStore`` protocol. The production
binding, ``KubernetesObjectStore``, resolves kinds through a ``Scheme`` and
talks to the API server through ``CustomObjectsApi``.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Generator, Protocol

from kubernetes.client import ApiException, CustomObjectsApi

from metrics import KUBE_API_CALLS, KUBE_API_DURATION
from models import KubernetesAPIError
from ratelimit import RateLimiter, get_rate_limiter
from scheme import ResourceKind, Scheme
from utils import object_ref

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """Get/create/delete operations over any registered kind."""

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        """Return the object, or None if it does not exist."""
        ...

    def create(self, kind: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create the object and return it as stored."""
        ...

    def delete(self, kind: str, namespace: str, name: str) -> bool:
        """Delete the object. Returns False if it was already gone."""
        ...


def _api_error(operation: str, kind: str, target: str, e: ApiException) -> KubernetesAPIError:
    return KubernetesAPIError(
        f"Failed to {operation} {kind} {target}: {e.status} {e.reason}",
        status=e.status,
    )


class KubernetesObjectStore:
    """ObjectStore backed by the Kubernetes CustomObjectsApi."""

    def __init__(
        self,
        scheme: Scheme,
        api: CustomObjectsApi | None = None,
        rate_limiter: RateLimiter | None = None,
        request_timeout: float | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            scheme: Registration table used to resolve kinds
            api: CustomObjectsApi client. If None, will be created lazily
                from the already loaded Kubernetes configuration.
            rate_limiter: Limiter wrapped around every call. Defaults to
                the process-wide limiter.
            request_timeout: Per-call timeout in seconds, or None for the
                client default
        """
        self.scheme = scheme
        self._api = api
        self._rate_limiter = rate_limiter
        self._request_timeout = request_timeout

    @property
    def api(self) -> CustomObjectsApi:
        """Get or create the Kubernetes API client."""
        if self._api is None:
            self._api = CustomObjectsApi()
        return self._api

    @property
    def rate_limiter(self) -> RateLimiter:
        if self._rate_limiter is None:
            self._rate_limiter = get_rate_limiter()
        return self._rate_limiter

    def _call_kwargs(self) -> dict[str, Any]:
        if self._request_timeout:
            return {"_request_timeout": self._request_timeout}
        return {}

    @contextmanager
    def _instrumented(self, kind: str, operation: str) -> Generator[None, None, None]:
        """Throttle one API call and record its outcome."""
        start = time.monotonic()
        status = "error"
        try:
            with self.rate_limiter.acquire():
                yield
            status = "success"
        except ApiException as e:
            if e.status == 404:
                status = "not_found"
            raise
        finally:
            KUBE_API_CALLS.labels(kind=kind, operation=operation, status=status).inc()
            KUBE_API_DURATION.labels(kind=kind, operation=operation).observe(
                time.monotonic() - start
            )

    @staticmethod
    def _require_namespace(rk: ResourceKind, namespace: str) -> None:
        if rk.namespaced and not namespace:
            raise ValueError(f"{rk.kind} is namespaced but no namespace was given")

    # -------------------------------------------------------------------------
    # ObjectStore operations
    # -------------------------------------------------------------------------

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        """Get an object by namespace and name (namespace ignored for cluster-scoped kinds)."""
        rk = self.scheme.lookup(kind)
        self._require_namespace(rk, namespace)
        target = f"{namespace}/{name}" if rk.namespaced else name
        try:
            with self._instrumented(kind, "get"):
                if rk.namespaced:
                    return self.api.get_namespaced_custom_object(
                        rk.group, rk.version, namespace, rk.plural, name,
                        **self._call_kwargs(),
                    )
                return self.api.get_cluster_custom_object(
                    rk.group, rk.version, rk.plural, name,
                    **self._call_kwargs(),
                )
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"{kind} {target} not found")
                return None
            raise _api_error("get", kind, target, e) from e

    def create(self, kind: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create an object from its body; the namespace is taken from metadata."""
        rk = self.scheme.lookup(kind)
        metadata = body.get("metadata", {})
        namespace = metadata.get("namespace", "")
        self._require_namespace(rk, namespace)
        target = object_ref(body)
        try:
            with self._instrumented(kind, "create"):
                if rk.namespaced:
                    created = self.api.create_namespaced_custom_object(
                        rk.group, rk.version, namespace, rk.plural, body,
                        **self._call_kwargs(),
                    )
                else:
                    created = self.api.create_cluster_custom_object(
                        rk.group, rk.version, rk.plural, body,
                        **self._call_kwargs(),
                    )
        except ApiException as e:
            raise _api_error("create", kind, target, e) from e
        logger.debug(f"Created {kind} {target}")
        return created

    def delete(self, kind: str, namespace: str, name: str) -> bool:
        """Delete an object. A 404 is reported as False instead of an error."""
        rk = self.scheme.lookup(kind)
        self._require_namespace(rk, namespace)
        target = f"{namespace}/{name}" if rk.namespaced else name
        try:
            with self._instrumented(kind, "delete"):
                if rk.namespaced:
                    self.api.delete_namespaced_custom_object(
                        rk.group, rk.version, namespace, rk.plural, name,
                        **self._call_kwargs(),
                    )
                else:
                    self.api.delete_cluster_custom_object(
                        rk.group, rk.version, rk.plural, name,
                        **self._call_kwargs(),
                    )
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"{kind} {target} already gone")
                return False
            raise _api_error("delete", kind, target, e) from e
        logger.debug(f"Deleted {kind} {target}")
        return True
