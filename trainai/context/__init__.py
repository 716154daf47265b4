"""Platform context for the assistant prompt."""

from trainai.context.knowledge_base import PLATFORM_KNOWLEDGE
from trainai.context.platform_context import PlatformContextAggregator, PlatformSnapshot

__all__ = ["PLATFORM_KNOWLEDGE", "PlatformContextAggregator", "PlatformSnapshot"]
