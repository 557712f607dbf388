"""
Concept2 sync configuration constants.

Tunables that come from the environment live in pbdash.config.settings;
these are fixed.
"""


class SyncMode:
    """How far back a sync run fetches."""

    # No updated_after: entire history
    BOOTSTRAP = "bootstrap"

    # updated_after = last successful sync
    INCREMENTAL = "incremental"


class SyncOperation:
    """Lease names for single-flight guarding."""

    SYNC = "sync"
    RECALCULATE = "recalculate"
