"""
Database Schema
SQLAlchemy models for tracked players and group schedules
"""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class TrackedPlayer(Base):
    __tablename__ = "tracked_players"

    group_id = Column(String(64), primary_key=True)
    username = Column(String(64), primary_key=True)
    created_at = Column(DateTime, default=func.now())


class ScheduleRow(Base):
    __tablename__ = "schedules"

    group_id = Column(String(64), primary_key=True)
    channel_ref = Column(String(128), nullable=False)
    time_of_day = Column(String(5), nullable=False)  # "HH:mm" (24h)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
