"""Persistent storage for daily baselines, the checkpoint and preferences."""

from pystepper.store.base import PreferencesSource, StepStore, StoreTransaction
from pystepper.store.sqlite import StepDatabase

__all__ = [
    "PreferencesSource",
    "StepDatabase",
    "StepStore",
    "StoreTransaction",
]
