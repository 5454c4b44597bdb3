"""SQLAlchemy database models for shared year reviews"""
import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class SharedReview(Base):
    """
    An anonymized year review published under a public share id.
    Contact names are replaced by placeholder aliases before storing.
    """
    __tablename__ = 'shared_reviews'

    id = Column(String, primary_key=True)
    year = Column(Integer, nullable=False)
    payload = Column(Text, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.datetime.now(datetime.UTC))
