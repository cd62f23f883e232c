"""Blob storage backends and phase result persistence."""
