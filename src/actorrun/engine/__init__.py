"""Execution engine: lifecycle tracking and the extraction orchestrator."""

from actorrun.engine.executor import ExtractionEngine, ExtractionOutput, ExtractionRequest
from actorrun.engine.lifecycle import ExecutionTracker

__all__ = ["ExecutionTracker", "ExtractionEngine", "ExtractionOutput", "ExtractionRequest"]
