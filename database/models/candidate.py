import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Integer, Numeric, Uuid, Index

from core.models import utcnow
from .base import Base, JsonDocument


class CandidateProfileRecord(Base):
    """
    Candidate profile as owned by the profile service.

    The engine only reads this table.
    """
    __tablename__ = 'candidate_profile'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    role = Column(Text, nullable=False, default='junior')
    account_status = Column(Text, nullable=False, default='active')

    primary_specialty = Column(Text, nullable=True)
    subspecialties = Column(JsonDocument, default=list)
    years_of_experience = Column(Integer, nullable=True)
    skills = Column(JsonDocument, default=list)

    verification_status = Column(Text, nullable=True)
    rating_average = Column(Numeric(3, 2), default=0)
    rating_count = Column(Integer, default=0)

    preferred_categories = Column(JsonDocument, default=list)
    preferred_budget_min = Column(Numeric(12, 2), nullable=True)
    preferred_budget_max = Column(Numeric(12, 2), nullable=True)
    remote_work_preference = Column(Text, nullable=True, default='remote_only')

    seeking_opportunities = Column(Boolean, nullable=False, default=False)
    has_active_subscription = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('idx_candidate_profile_seeking', 'seeking_opportunities', 'account_status'),
        Index('idx_candidate_profile_created', 'created_at'),
    )
