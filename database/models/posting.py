import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Integer, Numeric, Uuid, Index

from core.models import utcnow
from .base import Base, JsonDocument


class JobPostingRecord(Base):
    """
    Job posting owned by a senior doctor.

    ``status`` is written only by the posting lifecycle and the
    accept-cascade. ``version`` is bumped on every flush and checked by
    SQLAlchemy so a stale writer fails instead of overwriting.
    """
    __tablename__ = 'job_posting'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, nullable=False)

    title = Column(Text, nullable=False, default='')
    specialty = Column(Text, nullable=True)
    sub_specialties = Column(JsonDocument, default=list)
    skills_required = Column(JsonDocument, default=list)
    min_years = Column(Integer, nullable=True)
    experience_level = Column(Text, nullable=True)

    budget_amount = Column(Numeric(12, 2), nullable=True)
    budget_type = Column(Text, nullable=True)
    location_preference = Column(Text, nullable=True)
    category = Column(Text, nullable=True)
    visibility = Column(Text, nullable=False, default='public')

    status = Column(Text, nullable=False, default='draft')
    deadline = Column(TIMESTAMP(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        Index('idx_job_posting_status', 'status'),
        Index('idx_job_posting_owner', 'owner_id'),
        Index('idx_job_posting_deadline', 'deadline'),
        Index('idx_job_posting_created', 'created_at'),
    )
