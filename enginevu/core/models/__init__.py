"""
Domain models — Pydantic types for enginevu.

All models are re-exported here for convenient access:

    from enginevu.core.models import EngineSpec, InstallContext, InstallRun, Receipt
"""

from enginevu.core.models.context import InstallContext
from enginevu.core.models.engine import EngineSpec
from enginevu.core.models.receipt import Receipt
from enginevu.core.models.run import STAGE_ORDER, InstallRun, Stage
from enginevu.core.models.status import EngineRecord, InstallStatus

__all__ = [
    "STAGE_ORDER",
    # status.py
    "EngineRecord",
    # engine.py
    "EngineSpec",
    # context.py
    "InstallContext",
    # run.py
    "InstallRun",
    "InstallStatus",
    # receipt.py
    "Receipt",
    "Stage",
]
