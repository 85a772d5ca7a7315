"""
Create the first central admin account.

Usage:
    ADMIN_USERNAME=admin ADMIN_PASSWORD=... python initialize_users.py
"""

import os
import sys
import logging
from dotenv import load_dotenv

load_dotenv()

from db import Base, engine, get_db
from models.models_user import User  # noqa: F401
import allocation.models  # noqa: F401
from utils.crud_user import get_user_by_username, create_user
from utils.auth_utils import hash_password
from allocation.logic.constants import UserRole

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("initialize_users")


def ensure_central_admin(username: str, password: str) -> bool:
    """Returns True if a user was created."""
    with get_db() as db:
        if get_user_by_username(db, username.lower()):
            logger.info(f"User {username} already exists, skipping")
            return False
        create_user(
            db,
            username=username,
            role=UserRole.CENTRAL_ADMIN.value,
            password_hash=hash_password(password),
        )
        logger.info(f"✅ Created central admin {username}")
        return True


if __name__ == "__main__":
    username = os.getenv("ADMIN_USERNAME", "admin")
    password = os.getenv("ADMIN_PASSWORD")
    if not password:
        logger.error("ADMIN_PASSWORD is not set")
        sys.exit(1)
    Base.metadata.create_all(bind=engine)
    ensure_central_admin(username, password)
