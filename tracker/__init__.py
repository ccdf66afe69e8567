"""Core (UI-agnostic) document tracking logic.

This package contains:
- date and row normalization (spreadsheet rows -> canonical records)
- the per-project document store
- filter normalization and application
- aggregate views (JSON-serializable payloads)
- the report progress state machine
"""
