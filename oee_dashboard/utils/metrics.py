"""
OEE Floor Dashboard - Application Metrics

Prometheus collectors for the KPI engine, exposed on /metrics.
"""

from prometheus_client import Counter, Histogram

KPI_COMPUTE_DURATION = Histogram(
    'oee_kpi_compute_duration_seconds',
    'Time spent answering a KPI query, telemetry read included',
    ['operation'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

TELEMETRY_SAMPLES_READ = Counter(
    'oee_telemetry_samples_read_total',
    'Number of telemetry samples read from the device store',
)

TELEMETRY_READ_FAILURES = Counter(
    'oee_telemetry_read_failures_total',
    'Number of failed reads against the telemetry store or machine catalog',
    ['source']
)
