"""Progress model: one per (user, scenario). Traversal state, score and counters."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.session import Base


class Progress(Base):
    __tablename__ = "progress"
    __table_args__ = (UniqueConstraint("user_id", "scenario_id", name="uq_progress_user_scenario"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    scenario_id = Column(Integer, ForeignKey("scenarios.id"), nullable=False, index=True)

    current_step_id = Column(Integer, ForeignKey("steps.id"), nullable=True)  # null once terminal
    score = Column(Integer, nullable=False, default=0)  # may go negative
    completed = Column(Boolean, nullable=False, default=False)
    failed = Column(Boolean, nullable=False, default=False)
    bad_decision_count = Column(Integer, nullable=False, default=0)
    # bumped on every write; conditional updates compare against it
    version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    decisions = relationship("Decision", back_populates="progress", order_by="Decision.position")
