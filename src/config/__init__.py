"""Settings and the declarative phase table."""
