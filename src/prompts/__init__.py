"""Versioned phase prompt templates."""
