"""Prometheus metrics for the smart parking simulator."""

from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry, generate_latest

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

# Classification latency histogram (in seconds)
CLASSIFICATION_LATENCY = Histogram(
    "parking_classification_latency_seconds",
    "Time taken to decode and classify an uploaded lot image",
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
    registry=REGISTRY,
)

CLASSIFICATION_CYCLES = Counter(
    "parking_classification_cycles_total",
    "Total number of image classifications by outcome",
    ["outcome"],  # applied, stale, decode_error
    registry=REGISTRY,
)

# Which rule decided each region
RULE_MATCHES = Counter(
    "parking_classifier_rule_matches_total",
    "Number of regions decided by each classifier rule",
    ["rule"],
    registry=REGISTRY,
)

SPOT_STATE_CHANGES = Counter(
    "parking_spot_state_changes_total",
    "Total number of parking spot state changes",
    ["spot_id", "change_type"],
    registry=REGISTRY,
)

# Current spot status gauge
SPOT_STATUS = Gauge(
    "parking_spot_occupied",
    "Current status of parking spot (1=occupied, 0=available or reserved)",
    ["spot_id", "category"],
    registry=REGISTRY,
)

TOTAL_SPOTS = Gauge(
    "parking_spots_total",
    "Total number of parking spots",
    registry=REGISTRY,
)

AVAILABLE_SPOTS = Gauge(
    "parking_spots_available",
    "Number of available parking spots",
    registry=REGISTRY,
)

OCCUPIED_SPOTS = Gauge(
    "parking_spots_occupied",
    "Number of occupied parking spots",
    registry=REGISTRY,
)

RESERVED_SPOTS = Gauge(
    "parking_spots_reserved",
    "Number of reserved parking spots",
    registry=REGISTRY,
)

GUIDANCE_INSTRUCTIONS = Counter(
    "parking_guidance_instructions_total",
    "Number of guidance instructions issued",
    ["command"],
    registry=REGISTRY,
)

ARRIVALS = Counter(
    "parking_arrivals_total",
    "Number of times the vehicle arrived at its target spot",
    registry=REGISTRY,
)

SERVICE_FAILURES = Counter(
    "parking_external_service_failures_total",
    "Failed calls to external collaborators",
    ["service"],
    registry=REGISTRY,
)


def record_classification_latency(latency_seconds: float) -> None:
    """Record classification latency."""
    CLASSIFICATION_LATENCY.observe(latency_seconds)


def record_classification_outcome(outcome: str) -> None:
    """Count a finished classification request."""
    CLASSIFICATION_CYCLES.labels(outcome=outcome).inc()


def record_rule_match(rule: str) -> None:
    RULE_MATCHES.labels(rule=rule).inc()


def record_spot_change(spot_id: str, new_status: str) -> None:
    """Record a spot state change."""
    SPOT_STATE_CHANGES.labels(spot_id=spot_id, change_type=f"became_{new_status}").inc()


def update_spot_status(spot_id: str, category: str, is_occupied: bool) -> None:
    """Update current spot status gauge."""
    SPOT_STATUS.labels(spot_id=spot_id, category=category).set(1 if is_occupied else 0)


def update_spot_counts(total: int, available: int, occupied: int, reserved: int) -> None:
    """Update overall spot count gauges."""
    TOTAL_SPOTS.set(total)
    AVAILABLE_SPOTS.set(available)
    OCCUPIED_SPOTS.set(occupied)
    RESERVED_SPOTS.set(reserved)


def record_instruction(command: str) -> None:
    GUIDANCE_INSTRUCTIONS.labels(command=command).inc()


def record_arrival() -> None:
    ARRIVALS.inc()


def record_service_failure(service: str) -> None:
    SERVICE_FAILURES.labels(service=service).inc()


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)
