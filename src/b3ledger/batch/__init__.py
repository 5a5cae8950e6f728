"""Chunked batch consolidation of pending operations."""
