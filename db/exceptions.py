"""Failure taxonomy for the stats buffer, the flush job and ranking generation."""


class StatsError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class StoreUnavailable(StatsError):
    """The counter store (Redis) or the durable store (PostgreSQL) cannot be reached."""

    def __init__(self, store: str, message: str):
        self.store = store
        super().__init__(f"{store} unavailable: {message}")


class ScanFailure(StatsError):
    """Enumerating or reading the buffered counters failed; nothing was persisted or deleted."""


class PersistFailure(StatsError):
    """The batch upsert of daily stats failed; the buffer is kept for the next run."""


class RankingComputeFailure(StatsError):
    pass


class RankingPersistFailure(StatsError):
    pass
