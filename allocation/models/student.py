from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime

from .base import Base, new_id


class Student(Base):
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=new_id)
    app_no = Column(String, unique=True, nullable=False, index=True)
    merit_number = Column(Integer, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    gender = Column(String, nullable=False)
    category = Column(String, nullable=False)
    stream = Column(String, nullable=False)
    choice1 = Column(String)
    choice2 = Column(String)
    choice3 = Column(String)
    choice4 = Column(String)
    choice5 = Column(String)
    choice6 = Column(String)
    choice7 = Column(String)
    choice8 = Column(String)
    choice9 = Column(String)
    choice10 = Column(String)
    counseling_district = Column(String)
    allotted_district = Column(String)
    allotted_stream = Column(String)
    allocation_status = Column(String, default="pending")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
