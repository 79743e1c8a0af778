from sqlalchemy import Column, Integer, String, Text, Float

from .base import Base


class CourseRecord(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    code = Column(String(32), nullable=False)
    name = Column(String(255), nullable=False)
    credits = Column(Float, nullable=False)
    type = Column(String(16), nullable=False)
    faculty_name = Column(String(128))
    teacher_name = Column(String(64))
    description = Column(Text)
    average_rating = Column(Float)
    review_count = Column(Integer)
