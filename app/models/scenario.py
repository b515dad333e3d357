"""Scenario model: one decision-tree exercise with role and difficulty metadata."""
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.session import Base


class Scenario(Base):
    __tablename__ = "scenarios"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    role = Column(String(128), nullable=False)
    difficulty = Column(String(16), nullable=False)  # easy | medium | hard
    description = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)

    steps = relationship("Step", back_populates="scenario", order_by="Step.id")
