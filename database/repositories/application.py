import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from core.exceptions import DuplicateApplication, NotFound
from core.models import (
    OPEN_APPLICATION_STATUSES, Application, ApplicationStatus,
    CommunicationEntry, Feedback, ensure_utc, utcnow,
)
from database.models import JobApplicationRecord
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_WITHDRAWN = ApplicationStatus.WITHDRAWN.value


def application_to_view(record: JobApplicationRecord) -> Application:
    return Application(
        id=record.id,
        candidate_id=record.candidate_id,
        posting_id=record.posting_id,
        status=ApplicationStatus(record.status),
        match_score=record.match_score or 0,
        proposal=dict(record.proposal or {}),
        applicant_notes=record.applicant_notes,
        employer_notes=record.employer_notes,
        source=record.source or "search",
        feedback=Feedback(
            employer_rating=record.employer_rating,
            employer_review=record.employer_review or "",
            applicant_rating=record.applicant_rating,
            applicant_review=record.applicant_review or "",
        ),
        communication_log=[CommunicationEntry.from_dict(e) for e in (record.communication_log or [])],
        interview_details=dict(record.interview_details) if record.interview_details else None,
        contract_details=dict(record.contract_details) if record.contract_details else None,
        created_at=ensure_utc(record.created_at),
        updated_at=ensure_utc(record.updated_at),
        version=record.version or 0,
    )


class ApplicationRepository(BaseRepository):
    def get_record(self, application_id: Any, for_update: bool = False) -> JobApplicationRecord:
        stmt = select(JobApplicationRecord).where(JobApplicationRecord.id == application_id)
        if for_update:
            stmt = stmt.with_for_update()
        record = self.db.execute(stmt).scalar_one_or_none()
        if record is None:
            raise NotFound('application', application_id)
        return record

    def find_open_for_pair(self, candidate_id: Any, posting_id: Any) -> Optional[JobApplicationRecord]:
        """Return the pair's non-withdrawn application, if any."""
        stmt = select(JobApplicationRecord).where(
            JobApplicationRecord.candidate_id == candidate_id,
            JobApplicationRecord.posting_id == posting_id,
            JobApplicationRecord.status != _WITHDRAWN,
        )
        return self.db.execute(stmt).scalars().first()

    def linked_posting_ids(self, candidate_id: Any) -> Set[Any]:
        stmt = select(JobApplicationRecord.posting_id).where(
            JobApplicationRecord.candidate_id == candidate_id,
            JobApplicationRecord.status != _WITHDRAWN,
        )
        return set(self.db.execute(stmt).scalars().all())

    def linked_candidate_ids(self, posting_id: Any) -> Set[Any]:
        stmt = select(JobApplicationRecord.candidate_id).where(
            JobApplicationRecord.posting_id == posting_id,
            JobApplicationRecord.status != _WITHDRAWN,
        )
        return set(self.db.execute(stmt).scalars().all())

    def count_submitted_since(self, candidate_id: Any, since: datetime) -> int:
        stmt = select(func.count()).select_from(JobApplicationRecord).where(
            JobApplicationRecord.candidate_id == candidate_id,
            JobApplicationRecord.status != ApplicationStatus.DRAFT.value,
            JobApplicationRecord.created_at >= since,
        )
        return self.db.execute(stmt).scalar_one()

    def has_accepted(self, posting_id: Any, exclude_id: Any = None) -> bool:
        stmt = select(JobApplicationRecord.id).where(
            JobApplicationRecord.posting_id == posting_id,
            JobApplicationRecord.status == ApplicationStatus.ACCEPTED.value,
        )
        if exclude_id is not None:
            stmt = stmt.where(JobApplicationRecord.id != exclude_id)
        return self.db.execute(stmt.limit(1)).first() is not None

    def list_open_rivals(self, posting_id: Any, exclude_id: Any) -> List[JobApplicationRecord]:
        """Lock and return the posting's other still-competing applications."""
        stmt = (
            select(JobApplicationRecord)
            .where(
                JobApplicationRecord.posting_id == posting_id,
                JobApplicationRecord.id != exclude_id,
                JobApplicationRecord.status.in_([s.value for s in OPEN_APPLICATION_STATUSES]),
            )
            .order_by(JobApplicationRecord.created_at, JobApplicationRecord.id)
            .with_for_update()
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_for_posting(self, posting_id: Any) -> List[JobApplicationRecord]:
        stmt = (
            select(JobApplicationRecord)
            .where(JobApplicationRecord.posting_id == posting_id)
            .order_by(JobApplicationRecord.created_at, JobApplicationRecord.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def create(
        self,
        candidate_id: Any,
        posting_id: Any,
        match_score: int,
        proposal: Dict[str, Any],
        applicant_notes: Optional[str],
        source: str,
        log: Iterable[CommunicationEntry] = ()
    ) -> JobApplicationRecord:
        now = utcnow()
        record = JobApplicationRecord(
            candidate_id=candidate_id,
            posting_id=posting_id,
            status=ApplicationStatus.SUBMITTED.value,
            match_score=match_score,
            proposal=dict(proposal),
            applicant_notes=applicant_notes,
            source=source,
            communication_log=[e.to_dict() for e in log],
            created_at=now,
            updated_at=now,
        )
        self.db.add(record)
        try:
            self.db.flush()
        except IntegrityError as e:
            logger.info(f"Duplicate application for candidate {candidate_id} on posting {posting_id}")
            raise DuplicateApplication(
                f"Candidate {candidate_id} already has an application for posting {posting_id}"
            ) from e
        return record

    def apply_status(
        self,
        record: JobApplicationRecord,
        status: ApplicationStatus,
        entry: Optional[CommunicationEntry] = None,
        **fields: Any
    ) -> JobApplicationRecord:
        """
        Write a validated status (plus any companion fields) onto a loaded
        row and flush. The version check fails the flush with StaleDataError
        if another transaction updated the row first.
        """
        record.status = status.value
        for name, value in fields.items():
            setattr(record, name, value)
        if entry is not None:
            self.append_entry(record, entry)
        record.updated_at = utcnow()
        self.db.flush()
        return record

    def append_entry(self, record: JobApplicationRecord, entry: CommunicationEntry) -> None:
        # reassign so the JSON column is flagged dirty
        record.communication_log = list(record.communication_log or []) + [entry.to_dict()]

    def save(self, record: JobApplicationRecord) -> JobApplicationRecord:
        record.updated_at = utcnow()
        self.db.flush()
        return record
