from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence


class AssignmentError(str, Enum):
    DUPLICATE_PARTICIPANTS = "duplicate_participants"
    SIZE_MISMATCH = "size_mismatch"
    INCOMPLETE_RATINGS = "incomplete_ratings"


class CompletionError(str, Enum):
    NEGATIVE_RANGE = "negative_range"
    INVERTED_RANGE = "inverted_range"
    ALREADY_FULL = "already_full"
    DUPLICATE_PARTICIPANTS = "duplicate_participants"
    CANDIDATE_ALREADY_MEMBER = "candidate_already_member"
    INSUFFICIENT_CANDIDATES = "insufficient_candidates"
    INCOMPLETE_RATINGS = "incomplete_ratings"


class BalanceEventType(str, Enum):
    GROUPS_ASSIGNED = "groups_assigned"
    SWAP_COMMITTED = "swap_committed"
    COMPLETION_SELECTED = "completion_selected"


class RandomSource(Protocol):
    def rand(self) -> float: ...


@dataclass(slots=True)
class BalanceEvent:
    event_id: str
    time: datetime
    scope: str
    event_type: BalanceEventType
    subjects: list[str]
    claims: list[str]
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class BalanceSettings:
    refinement_factor: int = 1
    pad_overflow: bool = True
    shuffle_result: bool = True
    filler_tag_prefix: str = "filler"

    def validate(self) -> None:
        if isinstance(self.refinement_factor, bool) or not isinstance(self.refinement_factor, int):
            raise ValueError("refinement_factor must be an integer")
        if self.refinement_factor < 1:
            raise ValueError("refinement_factor must be at least 1")
        if not isinstance(self.pad_overflow, bool) or not isinstance(self.shuffle_result, bool):
            raise ValueError("pad_overflow and shuffle_result must be booleans")
        if not isinstance(self.filler_tag_prefix, str) or not self.filler_tag_prefix:
            raise ValueError("filler_tag_prefix must be a non-empty string")


@dataclass(slots=True)
class ForensicArtifact:
    artifact_id: str
    timestamp: datetime
    engine_scope: str
    error_code: str
    message: str
    state_snapshot: Mapping[str, Any]
    context: Mapping[str, Any]
    identifiers: Mapping[str, str]
    causal_fragment: Sequence[str]
