"""Public entry points: facade and admin operations."""
