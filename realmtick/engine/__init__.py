"""Engine layer: step registry, orchestrator and daily scheduler."""

from realmtick.engine.context import TickContext
from realmtick.engine.orchestrator import StepResult, TickOrchestrator, TickRun
from realmtick.engine.scheduler import DailyScheduler
from realmtick.engine.steps import DEFAULT_STEPS, Step

__all__ = ["DEFAULT_STEPS", "DailyScheduler", "Step", "StepResult", "TickContext", "TickOrchestrator", "TickRun"]
