from sqlalchemy.orm import Session
from sqlalchemy import select
from models.models_user import User

def get_user_by_username(db: Session, username: str) -> User | None:
    return db.execute(select(User).where(User.username == username)).scalar_one_or_none()

def create_user(db: Session, *, username: str, role: str, password_hash: str, district: str | None = None, email: str | None = None) -> User:
    user = User(username=username.lower(), role=role, district=district, email=email, password_hash=password_hash)
    db.add(user)
    return user
