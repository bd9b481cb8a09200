"""Per-editor formatting strategies."""

from .base import HooksStrategy, McpStrategy, PromptsStrategy, RulesStrategy, SkillsStrategy
from .shared import (
    GlobalMcpStrategy,
    NativeSkillsStrategy,
    NoHooksStrategy,
    NoMcpStrategy,
    NoPromptsStrategy,
    PointerSkillsStrategy,
    StandardMcpStrategy,
)

__all__ = [
    "GlobalMcpStrategy",
    "HooksStrategy",
    "McpStrategy",
    "NativeSkillsStrategy",
    "NoHooksStrategy",
    "NoMcpStrategy",
    "NoPromptsStrategy",
    "PointerSkillsStrategy",
    "PromptsStrategy",
    "RulesStrategy",
    "SkillsStrategy",
    "StandardMcpStrategy",
]
