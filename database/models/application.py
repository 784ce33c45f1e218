import uuid

from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Integer, Uuid, Index

from core.models import utcnow
from .base import Base, JsonDocument


class JobApplicationRecord(Base):
    """
    A candidate's application to a posting.

    At most one non-withdrawn application may exist per (candidate, posting);
    the partial unique index enforces it for concurrent submits.
    """
    __tablename__ = 'job_application'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    posting_id = Column(Uuid, ForeignKey('job_posting.id', ondelete='CASCADE'), nullable=False)
    candidate_id = Column(Uuid, ForeignKey('candidate_profile.id', ondelete='CASCADE'), nullable=False)

    status = Column(Text, nullable=False, default='submitted')
    match_score = Column(Integer, nullable=False, default=0)
    source = Column(Text, nullable=False, default='search')

    proposal = Column(JsonDocument, default=dict)
    applicant_notes = Column(Text, nullable=True)
    employer_notes = Column(Text, nullable=True)

    employer_rating = Column(Integer, nullable=True)
    employer_review = Column(Text, nullable=True)
    applicant_rating = Column(Integer, nullable=True)
    applicant_review = Column(Text, nullable=True)

    communication_log = Column(JsonDocument, default=list)
    interview_details = Column(JsonDocument, nullable=True)
    contract_details = Column(JsonDocument, nullable=True)

    version = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        Index(
            'uq_job_application_open_pair', 'candidate_id', 'posting_id',
            unique=True,
            postgresql_where=(status != 'withdrawn'),
            sqlite_where=(status != 'withdrawn'),
        ),
        Index('idx_job_application_posting_status', 'posting_id', 'status'),
        Index('idx_job_application_candidate_created', 'candidate_id', 'created_at'),
    )
