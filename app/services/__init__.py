from app.services.progression import ProgressionEngine
from app.services.scoring import compute_performance, evaluate_decision
from app.services.seeding import seed_scenarios

__all__ = ["ProgressionEngine", "compute_performance", "evaluate_decision", "seed_scenarios"]
