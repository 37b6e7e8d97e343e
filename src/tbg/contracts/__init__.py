from .types import (
    AssignmentError,
    BalanceEvent,
    BalanceEventType,
    BalanceSettings,
    CompletionError,
    ForensicArtifact,
    RandomSource,
)

__all__ = [
    "AssignmentError",
    "BalanceEvent",
    "BalanceEventType",
    "BalanceSettings",
    "CompletionError",
    "ForensicArtifact",
    "RandomSource",
]
