"""Inference gateway: prompt composition, model invocation, JSON extraction."""
