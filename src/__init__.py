# src/__init__.py — v1
"""plan2bim: six-phase 2D drawing to 3D-BIM JSON pipeline."""

from plan2bim.version import __version__

__all__ = ["__version__"]
