"""Shared operator state - thread-safe singleton for the Kubernetes client and reconciler."""

import threading
from dataclasses import dataclass, field

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config

from config import OperatorConfig
from object_store import KubernetesObjectStore
from reconciler import ClusterClaimsReconciler
from scheme import Scheme, build_default_scheme


@dataclass
class OperatorState:
    """Thread-safe operator state container.

    Holds the objects every handler shares:
    - Operator configuration
    - Kubernetes CustomObjectsApi client
    - Object store and the reconciler built on it

    Handlers should use the global `state` instance rather than
    creating their own clients.
    """

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _config: OperatorConfig | None = field(default=None, repr=False)
    _scheme: Scheme | None = field(default=None, repr=False)
    _k8s_custom_api: k8s_client.CustomObjectsApi | None = field(default=None, repr=False)
    _reconciler: ClusterClaimsReconciler | None = field(default=None, repr=False)
    _k8s_configured: bool = field(default=False, repr=False)

    def _ensure_k8s_config(self) -> None:
        """Ensure Kubernetes configuration is loaded (must hold lock)."""
        if not self._k8s_configured:
            try:
                k8s_config.load_incluster_config()
            except k8s_config.ConfigException:
                k8s_config.load_kube_config()
            self._k8s_configured = True

    def _get_config(self) -> OperatorConfig:
        """Get or load the configuration (must hold lock)."""
        if self._config is None:
            self._config = OperatorConfig.from_env()
        return self._config

    def get_config(self) -> OperatorConfig:
        """Get the operator configuration, loading it from the environment once."""
        with self._lock:
            return self._get_config()

    def get_scheme(self) -> Scheme:
        with self._lock:
            if self._scheme is None:
                self._scheme = build_default_scheme()
            return self._scheme

    def get_k8s_custom_api(self) -> k8s_client.CustomObjectsApi:
        """Get or create the Kubernetes CustomObjectsApi client (thread-safe)."""
        with self._lock:
            self._ensure_k8s_config()
            if self._k8s_custom_api is None:
                self._k8s_custom_api = k8s_client.CustomObjectsApi()
            return self._k8s_custom_api

    def get_reconciler(self) -> ClusterClaimsReconciler:
        """Get or create the ClusterClaim reconciler (thread-safe)."""
        scheme = self.get_scheme()
        api = self.get_k8s_custom_api()
        with self._lock:
            if self._reconciler is None:
                config = self._get_config()
                store = KubernetesObjectStore(
                    scheme, api, request_timeout=config.request_timeout
                )
                self._reconciler = ClusterClaimsReconciler(
                    store, addon_version=config.addon_version
                )
            return self._reconciler

    def close(self) -> None:
        """Drop cached clients."""
        with self._lock:
            self._reconciler = None
            if self._k8s_custom_api is not None:
                self._k8s_custom_api.api_client.close()
                self._k8s_custom_api = None


# Global operator state singleton
state = OperatorState()


def get_config() -> OperatorConfig:
    """Get the shared operator configuration."""
    return state.get_config()


def get_reconciler() -> ClusterClaimsReconciler:
    """Get the shared ClusterClaim reconciler."""
    return state.get_reconciler()
