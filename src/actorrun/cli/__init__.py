"""actorrun command-line interface."""
