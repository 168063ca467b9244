from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

PIPELINE_STAGE_DURATION = Histogram(
    "swift_pipeline_stage_duration_seconds",
    "Pipeline stage duration",
    ["stage"],
    buckets=[0.1, 0.25, 0.5, 1.0, 1.5, 2.0, 3.0, 5.0, 10.0],
)

INPUT_KIND = Counter(
    "swift_inputs_total",
    "Validated assistant requests by input kind",
    ["kind"],
)

COMPLETION_REQUESTS = Counter(
    "swift_completion_requests_total",
    "Text completion requests",
    ["provider"],
)

SYNTHESIS_FAILURES = Counter(
    "swift_synthesis_failures_total",
    "Text-to-speech provider failures",
)

PIPELINE_ERRORS = Counter(
    "swift_pipeline_errors_total",
    "Requests that ended in an error response",
    ["kind"],
)

RATE_LIMITED = Counter(
    "swift_rate_limited_total",
    "Requests rejected by the rate limiter",
)


def setup_metrics(app):
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/docs", "/openapi.json"],
    ).instrument(app).expose(app, endpoint="/metrics")
