"""
EngineSpec — static metadata for an installable engine.

Defined once when the engine is registered and never mutated.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class EngineSpec(BaseModel):
    """Display name, short identifier and supported platforms."""

    model_config = ConfigDict(frozen=True)

    name: str                       # human-readable, e.g. "LibJS"
    id: str                         # registry key and bin/engine dir name
    supported: tuple[str, ...] = ()  # platform identifiers with builds

    def supports(self, platform: str) -> bool:
        """Whether the engine publishes builds for ``platform``."""
        return platform in self.supported
