from .charting import render_group_ratings

__all__ = ["render_group_ratings"]
