"""Database Infrastructure — SQLAlchemy Base for the KV table.

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for tests
"""
