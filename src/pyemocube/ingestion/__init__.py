"""Ingestion layer.

This package turns raw sensor payloads into typed readings and derived
labels. Nothing in here touches shared hub state.
"""

__all__: list[str] = []
