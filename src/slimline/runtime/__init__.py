"""Runtime helpers referenced by lowered templates."""
