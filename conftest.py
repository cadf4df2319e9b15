"""Global pytest configuration."""

import os

# Set DATABASE_URL and ENVIRONMENT for tests before any imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
