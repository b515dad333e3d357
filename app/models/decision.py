"""Decision model: one accepted choice. Rows are appended, never edited."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.session import Base


class Decision(Base):
    __tablename__ = "decisions"
    __table_args__ = (UniqueConstraint("progress_id", "position", name="uq_decision_position"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    progress_id = Column(Integer, ForeignKey("progress.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # 0-based order within the current run
    step_id = Column(Integer, nullable=False)
    option_id = Column(String(64), nullable=False)
    xp_change = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    progress = relationship("Progress", back_populates="decisions")
