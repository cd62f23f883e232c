"""Inference client layer."""
