import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select, update, or_

from core.exceptions import NotFound
from core.models import (
    BudgetType, ExperienceLevel, LocationPreference, PostingSnapshot,
    PostingStatus, Visibility, ensure_utc, parse_enum, utcnow,
)
from core.ports import PostingStore
from database.models import JobPostingRecord
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def posting_to_snapshot(record: JobPostingRecord) -> PostingSnapshot:
    return PostingSnapshot(
        id=record.id,
        owner_id=record.owner_id,
        title=record.title or "",
        specialty=record.specialty or "",
        sub_specialties=frozenset(record.sub_specialties or ()),
        required_skills=frozenset(record.skills_required or ()),
        minimum_years=record.min_years,
        experience_level=parse_enum(ExperienceLevel, record.experience_level),
        budget_amount=float(record.budget_amount) if record.budget_amount is not None else None,
        budget_type=parse_enum(BudgetType, record.budget_type),
        location_preference=parse_enum(LocationPreference, record.location_preference),
        category=record.category,
        visibility=parse_enum(Visibility, record.visibility) or Visibility.PUBLIC,
        status=PostingStatus(record.status),
        deadline=ensure_utc(record.deadline),
        created_at=ensure_utc(record.created_at),
        version=record.version or 0,
    )


class PostingRepository(BaseRepository, PostingStore):
    def get_record(self, posting_id: Any, for_update: bool = False) -> JobPostingRecord:
        """
        Load the posting row. With ``for_update`` the row stays locked
        (PostgreSQL) until the surrounding transaction ends.
        """
        stmt = select(JobPostingRecord).where(JobPostingRecord.id == posting_id)
        if for_update:
            stmt = stmt.with_for_update()
        record = self.db.execute(stmt).scalar_one_or_none()
        if record is None:
            raise NotFound('posting', posting_id)
        return record

    def get_posting(self, posting_id: Any, timeout: Optional[float] = None) -> PostingSnapshot:
        with self.upstream_read(f"posting {posting_id}", timeout):
            record = self.db.execute(
                select(JobPostingRecord).where(JobPostingRecord.id == posting_id)
            ).scalar_one_or_none()
        if record is None:
            raise NotFound('posting', posting_id)
        return posting_to_snapshot(record)

    def list_open_postings(self, now: datetime, timeout: Optional[float] = None) -> List[PostingSnapshot]:
        stmt = (
            select(JobPostingRecord)
            .where(
                JobPostingRecord.status == PostingStatus.ACTIVE.value,
                or_(JobPostingRecord.deadline.is_(None), JobPostingRecord.deadline > now),
            )
            .order_by(JobPostingRecord.created_at, JobPostingRecord.id)
        )
        with self.upstream_read("open postings", timeout):
            records = self.db.execute(stmt).scalars().all()
        return [posting_to_snapshot(r) for r in records]

    def apply_status(self, record: JobPostingRecord, status: PostingStatus) -> JobPostingRecord:
        """
        Write a status onto a loaded row and flush. Callers are the posting
        lifecycle services, which validate the edge first.
        """
        record.status = status.value
        record.updated_at = utcnow()
        self.db.flush()
        return record

    def guard_accepting(self, posting_id: Any) -> bool:
        """
        Conditional no-op write that succeeds only while the posting is active.

        Serialises a submit against a concurrent status change: whichever
        commits second observes the other's result.
        """
        result = self.db.execute(
            update(JobPostingRecord)
            .where(
                JobPostingRecord.id == posting_id,
                JobPostingRecord.status == PostingStatus.ACTIVE.value,
            )
            .values(status=JobPostingRecord.status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
