"""Business logic: proximity, aggregation, pattern detection and insight scheduling."""
