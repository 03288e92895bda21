"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""

    # Local catalog
    LIBRARY_DB_PATH = os.getenv("LIBRARY_DB_PATH", "library.db")

    # Open Library
    OPENLIBRARY_BASE_URL = os.getenv("OPENLIBRARY_BASE_URL", "https://openlibrary.org")
    COVERS_BASE_URL = os.getenv("COVERS_BASE_URL", "https://covers.openlibrary.org/b/id")
    PLACEHOLDER_COVER_URL = os.getenv(
        "PLACEHOLDER_COVER_URL",
        "https://via.placeholder.com/100x150.png?text=No+Cover"
    )

    # Correction table override (JSON file); bundled table when unset
    CORRECTIONS_FILE = os.getenv("CORRECTIONS_FILE")

    # Defaults
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    DEFAULT_MAX_RETRIES = int(os.getenv("DEFAULT_MAX_RETRIES", "3"))
    MAX_CONCURRENT = int(os.getenv("MAX_CONCURRENT", "5"))
