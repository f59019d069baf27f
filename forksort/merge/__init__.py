"""Merge module - Two-way merge of sorted line streams."""

from .two_way_merge import MergeState, merge_streams

__all__ = ["merge_streams", "MergeState"]
