"""Structured logging with per-invocation context."""
