"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real database or pin forecast noise by accident
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
os.environ.pop("FORECAST_SEED", None)
