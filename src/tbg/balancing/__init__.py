from .assignment import BalancedGroupAssigner
from .completion import GroupCompletionSelector
from .matchmaking import pair_matches
from .models import AssignmentResult, CompletionResult

__all__ = [
    "AssignmentResult",
    "BalancedGroupAssigner",
    "CompletionResult",
    "GroupCompletionSelector",
    "pair_matches",
]
