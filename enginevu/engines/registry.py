"""
Engine registry — engine id → implementation.

The registry is the single point of engine lookup. The CLI and the
pipeline driver never import engine modules directly.
"""

from __future__ import annotations

import logging

from enginevu.core.errors import UnknownEngineError
from enginevu.core.models.engine import EngineSpec
from enginevu.engines.base import Engine

logger = logging.getLogger(__name__)


class EngineRegistry:
    """Holds engines keyed by ``spec.id``."""

    def __init__(self) -> None:
        self._engines: dict[str, Engine] = {}

    def register(self, engine: Engine) -> None:
        """Register an engine, replacing any previous one with the same id."""
        engine_id = engine.spec.id
        if engine_id in self._engines:
            logger.warning("Overwriting existing engine: %s", engine_id)
        self._engines[engine_id] = engine
        logger.debug("Registered engine: %s", engine_id)

    def require(self, engine_id: str) -> Engine:
        """Look up an engine by id, failing loudly when unknown."""
        engine = self._engines.get(engine_id)
        if engine is None:
            known = ", ".join(sorted(self._engines)) or "none"
            raise UnknownEngineError(f"Unknown engine '{engine_id}' (known: {known})")
        return engine

    def list_engines(self) -> list[str]:
        """List all registered engine ids."""
        return list(self._engines.keys())

    def specs(self) -> list[EngineSpec]:
        """Metadata of every registered engine."""
        return [engine.spec for engine in self._engines.values()]

    def supported_on(self, platform: str) -> list[Engine]:
        """Engines that publish builds for ``platform``."""
        return [e for e in self._engines.values() if e.spec.supports(platform)]


def default_registry() -> EngineRegistry:
    """A registry with every built-in engine."""
    from enginevu.engines.kiesel import KieselEngine
    from enginevu.engines.libjs import LibJSEngine

    registry = EngineRegistry()
    registry.register(KieselEngine())
    registry.register(LibJSEngine())
    return registry
