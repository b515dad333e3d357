"""Progress persistence. The only code that reads or writes progress and decision rows."""
import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.decision import Decision
from app.models.progress import Progress
from app.schemas.progress import DecisionRecord, ProgressSnapshot
from app.services.errors import InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo; stored values are always UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class ProgressStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def load(self, user_id: str, scenario_id: int) -> ProgressSnapshot | None:
        result = await self.db.execute(
            select(Progress)
            .where(Progress.user_id == user_id, Progress.scenario_id == scenario_id)
            .execution_options(populate_existing=True)
        )
        progress = result.scalar_one_or_none()
        if progress is None:
            return None

        # AsyncSession can't lazy-load the relationship; query rows explicitly
        rows = await self.db.execute(
            select(Decision).where(Decision.progress_id == progress.id).order_by(Decision.position.asc())
        )
        decisions = [
            DecisionRecord(step_id=d.step_id, option_id=d.option_id, xp_change=d.xp_change, timestamp=_as_utc(d.created_at))
            for d in rows.scalars().all()
        ]
        return ProgressSnapshot(
            id=progress.id,
            user_id=progress.user_id,
            scenario_id=progress.scenario_id,
            current_step_id=progress.current_step_id,
            score=progress.score,
            completed=progress.completed,
            failed=progress.failed,
            bad_decision_count=progress.bad_decision_count,
            version=progress.version,
            decisions=decisions,
        )

    async def reset(self, user_id: str, scenario_id: int, root_step_id: int) -> ProgressSnapshot:
        """Create the record, or overwrite it in place, positioned at the root step."""
        values = {
            "current_step_id": root_step_id,
            "score": 0,
            "completed": False,
            "failed": False,
            "bad_decision_count": 0,
        }
        for _ in range(2):
            existing = await self._overwrite(user_id, scenario_id, values)
            if not existing:
                self.db.add(Progress(user_id=user_id, scenario_id=scenario_id, version=0, **values))
            try:
                await self.db.commit()
                break
            except IntegrityError:
                # a concurrent start inserted the row first; overwrite it instead
                await self.db.rollback()
                logger.warning("Concurrent start for user=%s scenario=%s, retrying as reset", user_id, scenario_id)
        else:
            raise InvalidStateError("Progress is being modified concurrently")

        snapshot = await self.load(user_id, scenario_id)
        if snapshot is None:
            raise NotFoundError("Progress disappeared while it was being reset")
        return snapshot

    async def _overwrite(self, user_id: str, scenario_id: int, values: dict) -> bool:
        result = await self.db.execute(
            select(Progress.id).where(Progress.user_id == user_id, Progress.scenario_id == scenario_id)
        )
        progress_id = result.scalar_one_or_none()
        if progress_id is None:
            return False
        await self.db.execute(delete(Decision).where(Decision.progress_id == progress_id))
        await self.db.execute(
            update(Progress)
            .where(Progress.id == progress_id)
            .values(version=Progress.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        return True

    async def record_decision(
        self,
        snapshot: ProgressSnapshot,
        decision: DecisionRecord,
        *,
        score: int,
        bad_decision_count: int,
        current_step_id: int | None,
        completed: bool = False,
        failed: bool = False,
    ) -> ProgressSnapshot:
        """Append a decision and move the record on, only if nobody else moved it first.

        The UPDATE is guarded by the snapshot's version and current step. If
        another request advanced the record in between, no row matches, nothing
        is written and InvalidStateError is raised.
        """
        result = await self.db.execute(
            update(Progress)
            .where(
                Progress.id == snapshot.id,
                Progress.version == snapshot.version,
                Progress.current_step_id == snapshot.current_step_id,
                Progress.completed == False,  # noqa: E712
                Progress.failed == False,  # noqa: E712
            )
            .values(
                score=score,
                bad_decision_count=bad_decision_count,
                current_step_id=current_step_id,
                completed=completed,
                failed=failed,
                version=Progress.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            logger.warning(
                "Lost update race on progress %s at step %s", snapshot.id, snapshot.current_step_id
            )
            raise InvalidStateError("This is not the current step")

        self.db.add(
            Decision(
                progress_id=snapshot.id,
                position=len(snapshot.decisions),
                step_id=decision.step_id,
                option_id=decision.option_id,
                xp_change=decision.xp_change,
                created_at=decision.timestamp,
            )
        )
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise InvalidStateError("This is not the current step")

        return snapshot.model_copy(
            update={
                "score": score,
                "bad_decision_count": bad_decision_count,
                "current_step_id": current_step_id,
                "completed": completed,
                "failed": failed,
                "version": snapshot.version + 1,
                "decisions": [*snapshot.decisions, decision],
            }
        )
