"""Constants for bookmark synchronization."""

DEFAULT_BATCH_SIZE = 50
SYNC_HISTORY_LIMIT = 50

# Raindrop only stores web links; bookmarklets and browser-internal pages stay local.
UPLOADABLE_SCHEMES = frozenset({"http", "https"})

SCHEDULER_JOB_ID = "raindrop_sync"
