"""Constants for the Azure Remedy Operator."""

from enum import Enum

# API Group
API_GROUP = "azure.remedy.cloud37.dev"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_PUBLIC_IP_ADDRESS = "PublicIPAddress"
PLURAL_PUBLIC_IP_ADDRESSES = "publicipaddresses"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "azure-remedy-operator"

# Controller name used in structured logs
CONTROLLER_NAME = "azure-remedy-operator"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_PUBLIC_IP_FOUND = "PublicIPAddressFound"
EVENT_REASON_PUBLIC_IP_DELETED = "PublicIPAddressDeleted"
EVENT_REASON_CLEANUP_EXHAUSTED = "CleanupAttemptsExhausted"


class OperationType(str, Enum):
    """Operation types tracked in the failure history of a PublicIPAddress."""

    GET_PUBLIC_IP_ADDRESS = "GetPublicIPAddress"
    REMOVE_FROM_LOAD_BALANCER = "RemoveFromLoadBalancer"
    DELETE_PUBLIC_IP_ADDRESS = "DeletePublicIPAddress"
