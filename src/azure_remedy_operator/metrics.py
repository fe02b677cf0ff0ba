"""Prometheus metrics for the Azure Remedy Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "azure_remedy_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "azure_remedy_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

error_total = Counter(
    "azure_remedy_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# Remedy metrics
cleaned_public_ips_total = Counter(
    "azure_remedy_operator_cleaned_public_ips_total",
    "Total number of orphaned Azure public IP addresses that were cleaned up",
)

cleanup_exhausted_total = Counter(
    "azure_remedy_operator_cleanup_exhausted_total",
    "Total number of operations given up after exceeding their attempt budget",
    ["operation"],
)

# API call metrics
api_call_total = Counter(
    "azure_remedy_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "azure_remedy_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 30.0],
)

rate_limit_hits_total = Counter(
    "azure_remedy_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
