"""Step model: one node of a scenario graph. Options (JSON) carry the outgoing edges."""
from sqlalchemy import Boolean, Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from app.db.session import Base


class Step(Base):
    __tablename__ = "steps"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scenario_id = Column(Integer, ForeignKey("scenarios.id"), nullable=False, index=True)
    context = Column(Text, nullable=False)
    # options: JSON array of {id, text, xp_change, next_step_id}
    options_json = Column(Text, nullable=False, default="[]")
    is_root = Column(Boolean, nullable=False, default=False)

    scenario = relationship("Scenario", back_populates="steps")
