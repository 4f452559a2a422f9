"""Configuration module for the Pengaduan complaint service.

This module provides centralized configuration management, including directory
paths, API server settings, authentication settings and application defaults.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# Uploaded complaint photos
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(DATA_DIR / "uploads")))

# URL prefix under which UPLOAD_DIR is served
UPLOAD_URL_PREFIX = "/uploads"

# --- Environment ---

# "development" exposes internal error details in 500 responses
APP_ENV: str = os.getenv("APP_ENV", "production")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# --- Database Configuration ---

DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/pengaduan.db")

# Some hosting providers still hand out the legacy scheme
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "5000"))

# CORS allowed origins (comma-separated list)
# Default includes the local frontend development servers. For production,
# set via CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173,http://localhost:5174",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24"))

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Minimum password length for registration and password changes
MIN_PASSWORD_LENGTH: int = 6

# When set, registering an admin account requires this token
ADMIN_REGISTRATION_TOKEN: Optional[str] = os.getenv("ADMIN_REGISTRATION_TOKEN") or None

# --- Roles ---

ROLE_CITIZEN = "citizen"
ROLE_ADMIN = "admin"
DEFAULT_ROLE = ROLE_CITIZEN

ROLES: Dict[str, Dict[str, str]] = {
    ROLE_CITIZEN: {
        "label": "Masyarakat",
        "description": "Citizen account that can file and follow its own complaints",
    },
    ROLE_ADMIN: {
        "label": "Administrator",
        "description": "Staff account that triages complaints and manages users",
    },
}

# --- Complaint Configuration ---

# Canonical category list, value -> display label
COMPLAINT_CATEGORIES: Dict[str, str] = {
    "infrastruktur": "Infrastruktur",
    "kebersihan": "Kebersihan",
    "keamanan": "Keamanan",
    "pelayanan": "Pelayanan Publik",
    "lingkungan": "Lingkungan",
    "transportasi": "Transportasi",
    "lainnya": "Lainnya",
}

# Alternative spellings accepted on input
CATEGORY_ALIASES: Dict[str, str] = {
    "pelayanan publik": "pelayanan",
    "pelayanan-publik": "pelayanan",
}

DEFAULT_COMPLAINT_TITLE: str = "Laporan Pengaduan"

# Minimum digit count for a reporter phone number
MIN_PHONE_DIGITS: int = 10

# Column widths of the users and complaints tables
MAX_EMAIL_LENGTH: int = 255
MAX_NAME_LENGTH: int = 100
MAX_PHONE_LENGTH: int = 20
MAX_TITLE_LENGTH: int = 200

# --- Upload Configuration ---

MAX_PHOTO_SIZE: int = int(os.getenv("MAX_PHOTO_SIZE", str(5 * 1024 * 1024)))

ALLOWED_PHOTO_TYPES: Dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

# --- Pagination ---

DEFAULT_PAGE_SIZE: int = 10
MAX_PAGE_SIZE: int = 100

# Highest page number accepted by list endpoints
MAX_PAGE_NUMBER: int = 1_000_000

# Number of records in the "recent" block of the statistics endpoint
RECENT_COMPLAINTS_LIMIT: int = 5
