"""Core pagination, database and settings modules."""
