"""Root conftest — shared test configuration."""

import os

# Keep tests on an in-process database and away from any real Redis
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_CACHE_ENABLED", "false")
