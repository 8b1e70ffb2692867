"""Read-only introspection and statistics engine for SQLCipher / SQLite files."""
