"""Operator configuration loaded from environment variables."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from models import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}")


def get_number(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{key} must not be negative, got {raw!r}")
    return value


def get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{key} must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class OperatorConfig:
    """Runtime settings for the controller.

    Every field has a default so the operator starts with an empty
    environment; see ``from_env`` for the variable names.
    """

    watch_namespace: str = ""
    metrics_port: int = 8383
    enable_leader_election: bool = False
    leader_election_id: str = "clusterclaims-controller.open-cluster-management.io"
    retry_delay: float = 60.0
    request_timeout: float = 30.0
    addon_version: str = "2.2.0"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "OperatorConfig":
        """Create from environment variables.

        Raises:
            ConfigurationError: If a variable holds an unparseable value
        """
        if env is None:
            env = os.environ
        defaults = cls()
        return cls(
            watch_namespace=env.get("WATCH_NAMESPACE", defaults.watch_namespace),
            metrics_port=get_int(env, "METRICS_PORT", defaults.metrics_port),
            enable_leader_election=_get_bool(
                env, "ENABLE_LEADER_ELECTION", defaults.enable_leader_election
            ),
            leader_election_id=env.get(
                "LEADER_ELECTION_ID", defaults.leader_election_id
            ),
            retry_delay=get_number(
                env, "RETRY_DELAY_SECONDS", defaults.retry_delay
            ),
            request_timeout=get_number(
                env, "KUBE_REQUEST_TIMEOUT_SECONDS", defaults.request_timeout
            ),
            addon_version=env.get(
                "KLUSTERLET_ADDON_VERSION", defaults.addon_version
            ),
            log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
        )
