"""Outcome decision, dispatch and run orchestration."""

from autoresolve.resolution.dispatcher import DispatchResult, ResolutionDispatcher
from autoresolve.resolution.matcher import Decision, decide, evaluate
from autoresolve.resolution.orchestrator import Orchestrator, build_orchestrator, run_once

__all__ = [
    "Decision",
    "DispatchResult",
    "Orchestrator",
    "ResolutionDispatcher",
    "build_orchestrator",
    "decide",
    "evaluate",
    "run_once",
]
