from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint

from .base import Base, new_id


class Vacancy(Base):
    __tablename__ = "vacancies"
    __table_args__ = (
        UniqueConstraint("district", "stream", "gender", "category", name="uq_vacancy_pool"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    district = Column(String, nullable=False)
    stream = Column(String, nullable=False)
    gender = Column(String, nullable=False)
    category = Column(String, nullable=False)
    total_seats = Column(Integer, default=0)
    available_seats = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
