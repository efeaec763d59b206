"""Platform primitives shared by the timer engine: errors, logging,
settings, timestamps, the event bus and the timing backends."""
