#!/usr/bin/env python3
"""
Test suite configuration and utilities.

All tests can be run with standard Python tools:

    python -m pytest tests/ -v

    # Using unittest
    python -m unittest discover tests -v

Database tests run against a temporary SQLite file built from the same ORM
metadata as production, so no external database is needed.
"""

import functools
import os
import shutil
import tempfile
import uuid
from datetime import timedelta
from typing import Any

from core.models import (
    AccountStatus, CandidateProfile, ExperienceLevel, JobPreferences,
    LocationPreference, PostingSnapshot, PostingStatus, RemotePreference,
    UserRole, VerificationTier, utcnow,
)
from database.database import build_session_factory
from database.models import (
    Base, CandidateProfileRecord, JobApplicationRecord, JobPostingRecord,
)
from database.uow import engine_uow


def make_candidate(**overrides: Any) -> CandidateProfile:
    """Cardiology candidate with 6 years and echo skills, unless overridden."""
    values = dict(
        id=uuid.uuid4(),
        primary_specialty="Cardiology",
        years_of_experience=6,
        skills=frozenset({"Echocardiography"}),
        preferences=JobPreferences(remote_preference=RemotePreference.REMOTE_ONLY),
        seeking_opportunities=True,
        account_status=AccountStatus.ACTIVE,
        role=UserRole.JUNIOR,
        created_at=utcnow(),
    )
    values.update(overrides)
    return CandidateProfile(**values)


def make_posting(**overrides: Any) -> PostingSnapshot:
    """Active remote Cardiology posting needing 3 years and echo, unless overridden."""
    values = dict(
        id=uuid.uuid4(),
        owner_id=uuid.uuid4(),
        title="Cardiology consult",
        specialty="Cardiology",
        required_skills=frozenset({"Echocardiography"}),
        minimum_years=3,
        location_preference=LocationPreference.REMOTE,
        status=PostingStatus.ACTIVE,
        deadline=utcnow() + timedelta(days=7),
        created_at=utcnow(),
    )
    values.update(overrides)
    return PostingSnapshot(**values)


class SqliteTestDatabase:
    """
    Temporary file-backed SQLite database with the engine schema.

    A file (not :memory:) so that several threads can open their own
    connections to the same data.
    """

    def __init__(self):
        self.directory = tempfile.mkdtemp(prefix="medmatch-test-")
        self.path = os.path.join(self.directory, "engine.db")
        self.session_factory = build_session_factory(
            f"sqlite:///{self.path}",
            connect_args={'check_same_thread': False, 'timeout': 30},
        )
        Base.metadata.create_all(bind=self.session_factory.kw['bind'])
        self.uow_factory = functools.partial(engine_uow, self.session_factory)

    def close(self) -> None:
        self.session_factory.kw['bind'].dispose()
        shutil.rmtree(self.directory, ignore_errors=True)

    def _add(self, record):
        session = self.session_factory()
        try:
            session.add(record)
            session.commit()
            return record
        finally:
            session.close()

    def add_candidate(self, **overrides: Any) -> CandidateProfileRecord:
        values = dict(
            id=uuid.uuid4(),
            role=UserRole.JUNIOR.value,
            account_status=AccountStatus.ACTIVE.value,
            primary_specialty="Cardiology",
            subspecialties=[],
            years_of_experience=6,
            skills=["Echocardiography"],
            verification_status=VerificationTier.UNVERIFIED.value,
            rating_average=0,
            rating_count=0,
            preferred_categories=[],
            remote_work_preference=RemotePreference.REMOTE_ONLY.value,
            seeking_opportunities=True,
            has_active_subscription=False,
        )
        values.update(overrides)
        return self._add(CandidateProfileRecord(**values))

    def add_posting(self, **overrides: Any) -> JobPostingRecord:
        values = dict(
            id=uuid.uuid4(),
            owner_id=uuid.uuid4(),
            title="Cardiology consult",
            specialty="Cardiology",
            sub_specialties=[],
            skills_required=["Echocardiography"],
            min_years=3,
            experience_level=ExperienceLevel.JUNIOR.value,
            location_preference=LocationPreference.REMOTE.value,
            visibility="public",
            status=PostingStatus.ACTIVE.value,
            deadline=utcnow() + timedelta(days=7),
        )
        values.update(overrides)
        return self._add(JobPostingRecord(**values))

    def get_application(self, application_id) -> JobApplicationRecord:
        session = self.session_factory()
        try:
            return session.get(JobApplicationRecord, application_id)
        finally:
            session.close()

    def get_posting(self, posting_id) -> JobPostingRecord:
        session = self.session_factory()
        try:
            return session.get(JobPostingRecord, posting_id)
        finally:
            session.close()

    def update(self, model, record_id, **fields: Any) -> None:
        """Write fields directly, bypassing the engine (test setup only)."""
        session = self.session_factory()
        try:
            record = session.get(model, record_id)
            for name, value in fields.items():
                setattr(record, name, value)
            session.commit()
        finally:
            session.close()

    def set_application_status(self, application_id, status: str) -> None:
        self.update(JobApplicationRecord, application_id, status=status)
