"""Content planner: intent → URL, extraction script, selectors."""

from actorrun.planner.adapter import ContentPlanner, fingerprint, validate_plan

__all__ = ["ContentPlanner", "fingerprint", "validate_plan"]
