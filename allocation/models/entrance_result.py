from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime

from .base import Base, new_id


class EntranceResult(Base):
    __tablename__ = "students_entrance_result"

    id = Column(String(36), primary_key=True, default=new_id)
    merit_no = Column(Integer, unique=True, nullable=False)
    application_no = Column(String, unique=True, nullable=False, index=True)
    roll_no = Column(String, unique=True, nullable=False)
    student_name = Column(String, nullable=False)
    marks = Column(Integer, nullable=False)
    gender = Column(String, nullable=False)
    category = Column(String, nullable=False)
    stream = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
