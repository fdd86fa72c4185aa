"""
Analytics package: ranking, densification and colouring of group work statistics.
"""

from .statistics import build_group_statistics, to_view_model

__all__ = ["build_group_statistics", "to_view_model"]
