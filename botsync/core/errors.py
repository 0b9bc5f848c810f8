"""
Exceptions raised by the sync job.

Adapters never raise for HTTP-level failures (they return a result, see core.results);
these are for conditions that must stop a transition or a whole tick.
"""
from __future__ import annotations


class BotSyncError(Exception):
    """Base class for all sync errors."""


class CredentialError(BotSyncError):
    """Token exchange failed. Fatal to the current tick: no authenticated call can proceed."""


class StoreWriteError(BotSyncError):
    """A store write the transition depends on did not succeed; the schedule keeps its status."""

    def __init__(self, what: str, result: object) -> None:
        super().__init__(f"{what} failed: {result}")
        self.what = what
        self.result = result


class StoreReadError(BotSyncError):
    """A read the transition depends on failed (not a plain "absent"); the schedule keeps its status."""

    def __init__(self, what: str, result: object) -> None:
        super().__init__(f"{what} failed: {result}")
        self.what = what
        self.result = result
