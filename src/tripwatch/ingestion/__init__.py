"""Ingestion layer.

This package turns raw stream frames into normalized domain objects.
"""

__all__: list[str] = []
