"""Pytest configuration and fixtures shared across all test modules.

Loaded by pytest before any test module, so the environment below is in
place before settings are imported.
"""

import os

# CRITICAL: Set this before any imports that might load settings
# This keeps .env files out of the test run
os.environ["TESTING"] = "true"

os.environ.setdefault("APP_THROTTLE_ENABLED", "true")
os.environ.setdefault("APP_THROTTLE_MAX_REQUESTS", "60")
os.environ.setdefault("APP_THROTTLE_PERIOD_SECONDS", "60")
os.environ.setdefault("LOG_LEVEL", "WARNING")
