import logging
from typing import Any, List, Optional

from sqlalchemy import select

from core.exceptions import NotFound
from core.models import (
    AccountStatus, CandidateProfile, JobPreferences, RemotePreference,
    UserRole, VerificationTier, ensure_utc, parse_enum,
)
from core.ports import ProfileStore
from database.models import CandidateProfileRecord
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def _float_or_none(value) -> Optional[float]:
    return float(value) if value is not None else None


def candidate_to_snapshot(record: CandidateProfileRecord) -> CandidateProfile:
    preferences = JobPreferences(
        preferred_categories=frozenset(record.preferred_categories or ()),
        budget_min=_float_or_none(record.preferred_budget_min),
        budget_max=_float_or_none(record.preferred_budget_max),
        remote_preference=parse_enum(RemotePreference, record.remote_work_preference) or RemotePreference.REMOTE_ONLY,
    )
    return CandidateProfile(
        id=record.id,
        primary_specialty=record.primary_specialty or "",
        subspecialties=frozenset(record.subspecialties or ()),
        years_of_experience=record.years_of_experience,
        skills=frozenset(record.skills or ()),
        verification=parse_enum(VerificationTier, record.verification_status),
        rating=_float_or_none(record.rating_average) or 0.0,
        review_count=record.rating_count or 0,
        preferences=preferences,
        seeking_opportunities=bool(record.seeking_opportunities),
        account_status=parse_enum(AccountStatus, record.account_status),
        role=parse_enum(UserRole, record.role),
        has_active_subscription=bool(record.has_active_subscription),
        created_at=ensure_utc(record.created_at),
    )


class CandidateRepository(BaseRepository, ProfileStore):
    def get_candidate(self, candidate_id: Any, timeout: Optional[float] = None) -> CandidateProfile:
        with self.upstream_read(f"candidate {candidate_id}", timeout):
            record = self.db.execute(
                select(CandidateProfileRecord).where(CandidateProfileRecord.id == candidate_id)
            ).scalar_one_or_none()
        if record is None:
            raise NotFound('candidate', candidate_id)
        return candidate_to_snapshot(record)

    def list_seeking_candidates(self, timeout: Optional[float] = None) -> List[CandidateProfile]:
        stmt = (
            select(CandidateProfileRecord)
            .where(
                CandidateProfileRecord.seeking_opportunities.is_(True),
                CandidateProfileRecord.account_status == AccountStatus.ACTIVE.value,
                CandidateProfileRecord.role == UserRole.JUNIOR.value,
            )
            .order_by(CandidateProfileRecord.created_at, CandidateProfileRecord.id)
        )
        with self.upstream_read("seeking candidates", timeout):
            records = self.db.execute(stmt).scalars().all()
        return [candidate_to_snapshot(r) for r in records]
