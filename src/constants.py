"""Constants used across the operator."""

# ClusterClaim (hive)
CLAIM_GROUP = "hive.openshift.io"
CLAIM_VERSION = "v1"
CLAIM_PLURAL = "clusterclaims"

# ManagedCluster (cluster registration)
MANAGED_CLUSTER_GROUP = "cluster.open-cluster-management.io"
MANAGED_CLUSTER_VERSION = "v1"
MANAGED_CLUSTER_PLURAL = "managedclusters"

# KlusterletAddonConfig (per-cluster add-on configuration)
ADDON_CONFIG_GROUP = "agent.open-cluster-management.io"
ADDON_CONFIG_VERSION = "v1"
ADDON_CONFIG_PLURAL = "klusterletaddonconfigs"

# Kind names used as keys in the scheme
KIND_CLUSTER_CLAIM = "ClusterClaim"
KIND_MANAGED_CLUSTER = "ManagedCluster"
KIND_ADDON_CONFIG = "KlusterletAddonConfig"

# Labels propagated to the registration and configuration records
LABEL_NAME = "name"
LABEL_VENDOR = "vendor"
VENDOR_OPENSHIFT = "OpenShift"

# Finalizer name kopf uses if it ever needs to block deletion
OPERATOR_FINALIZER = "open-cluster-management.io/clusterclaims-controller"
