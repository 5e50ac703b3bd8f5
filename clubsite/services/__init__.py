"""Content cache, upload pipeline and rendering helpers."""
