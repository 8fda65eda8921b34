"""Celery queue topology: exchanges, queues, task routing, and per-task limits."""

from kombu import Exchange, Queue  # type: ignore[import-untyped]

# ── Exchanges ─────────────────────────────────────────────────────────────────

default_exchange = Exchange("default", type="direct")

# ── Queues ────────────────────────────────────────────────────────────────────

CELERY_QUEUES = (
    # Default: on-demand work triggered from the API
    Queue("default", default_exchange, routing_key="default"),
    # Bulk: periodic signal → investor mapping (low urgency, resumable)
    Queue("bulk", default_exchange, routing_key="bulk"),
)

# ── Task routing ──────────────────────────────────────────────────────────────

CELERY_TASK_ROUTES: dict[str, dict] = {
    "tasks.match_unmapped_signals":         {"queue": "bulk"},
    "tasks.match_unmapped_signals_all_orgs": {"queue": "bulk"},
}

# ── Per-task rate limits and time limits ──────────────────────────────────────
# A time limit only truncates the batch: the cursor is re-derived from the
# stored targets on the next run.

CELERY_TASK_ANNOTATIONS: dict[str, dict] = {
    "tasks.match_unmapped_signals": {
        "time_limit": 600,
        "soft_time_limit": 540,
    },
    "tasks.match_unmapped_signals_all_orgs": {
        "time_limit": 120,
        "soft_time_limit": 90,
    },
}
