"""State store adapters for tracking-marker persistence.

Implementations support multiple backends:
- JSON file (zero-config, whole-file atomic overwrite)
- SQLite (single-file database via aiosqlite)
"""
