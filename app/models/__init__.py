from app.models.scenario import Scenario
from app.models.step import Step
from app.models.progress import Progress
from app.models.decision import Decision

__all__ = ["Scenario", "Step", "Progress", "Decision"]
