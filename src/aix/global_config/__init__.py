"""Shared global resources: comparison, tracking store and processor."""

from .comparison import deep_equal, mcp_configs_match, prompts_match
from .processor import (
    CHANGE_ADD,
    CHANGE_SKIP,
    GlobalChangeOptions,
    GlobalChangeRequest,
    GlobalChangeResult,
    GlobalChangeSummary,
    analyze_global_changes,
    apply_global_changes,
    remove_from_global_mcp_config,
    summarize_global_changes,
)
from .tracking import (
    GlobalTrackingEntry,
    GlobalTrackingFile,
    GlobalTrackingService,
    TrackingStoreError,
    make_tracking_key,
)

__all__ = [
    "CHANGE_ADD",
    "CHANGE_SKIP",
    "GlobalChangeOptions",
    "GlobalChangeRequest",
    "GlobalChangeResult",
    "GlobalChangeSummary",
    "GlobalTrackingEntry",
    "GlobalTrackingFile",
    "GlobalTrackingService",
    "TrackingStoreError",
    "analyze_global_changes",
    "apply_global_changes",
    "deep_equal",
    "make_tracking_key",
    "mcp_configs_match",
    "prompts_match",
    "remove_from_global_mcp_config",
    "summarize_global_changes",
]
