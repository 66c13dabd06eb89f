"""
Engines — one module per installable JavaScript engine.

    from enginevu.engines import default_registry

    registry = default_registry()
    engine = registry.require("kiesel")
"""

from enginevu.engines.base import LATEST, Engine
from enginevu.engines.registry import EngineRegistry, default_registry

__all__ = [
    "LATEST",
    "Engine",
    "EngineRegistry",
    "default_registry",
]
