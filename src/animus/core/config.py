"""
Application configuration using python-dotenv.

This module loads environment variables from .env file into os.environ
for use throughout the client.
"""

import os
import pathlib
from dotenv import load_dotenv


# Determine if we're running in a test environment
# Don't load .env file during testing to ensure predictable test behavior
is_testing = os.getenv("PYTEST_VERSION") is not None or "pytest" in os.getenv("_", "")

# Load .env file into os.environ (only outside of testing)
if not is_testing:
    possible_paths = [
        pathlib.Path(__file__).parent.parent.parent.parent / ".env",  # repository root
        pathlib.Path.cwd() / ".env",  # .env in current directory
    ]

    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def get_storage_database_url():
    """Get the local storage database URL from environment."""
    return os.getenv(
        "STORAGE_DATABASE_URL",
        "sqlite:///animus_storage.db"
    )

STORAGE_DATABASE_URL = get_storage_database_url()
ANIMUS_API_BASE_URL = os.getenv("ANIMUS_API_BASE_URL", "http://localhost:5001")
ANIMUS_REQUEST_TIMEOUT_SECONDS = float(os.getenv("ANIMUS_REQUEST_TIMEOUT_SECONDS", "30"))

# Chat assistant
CHAT_MAX_TOKENS = int(os.getenv("CHAT_MAX_TOKENS", "500"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
