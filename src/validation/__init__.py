"""Per-phase output shapes and the phase validator."""
