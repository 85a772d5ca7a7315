import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime
from db import Base

class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=True)
    first_name = Column(String(255))
    last_name = Column(String(255))
    role = Column(String(32), nullable=False)  # central_admin | district_admin
    district = Column(String(255), nullable=True)  # null for central_admin
    password_hash = Column(String(255), nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=datetime.utcnow, onupdate=datetime.utcnow)
