"""HTTP boundary for actorrun."""
