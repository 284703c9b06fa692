"""
Institute API Configuration
Database, token, mail and logging settings
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

# MongoDB
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "institute_db")

# JWT (HS256, shared secret)
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))

# Email verification
EMAIL_LINK = os.getenv("EMAIL_LINK", "http://localhost:5001")
EMAIL_FROM = os.getenv("EMAIL_FROM", "no-reply@institute.local")
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
VERIFICATION_TOKEN_HOURS = 24

# Misc
VERSION = os.getenv("VERSION")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

DEFAULT_AVATAR = "default-avatar.png"


def configure_logging():
    """Set up root logging once for the whole service"""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
