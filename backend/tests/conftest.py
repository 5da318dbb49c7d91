"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real database or hosted backend
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
os.environ.setdefault("SUPABASE_URL", "http://hosted.test")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key-test")
os.environ.setdefault("LOG_FORMAT", "text")
