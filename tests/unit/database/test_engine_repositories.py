#!/usr/bin/env python3
"""
Repository tests: snapshot conversion, the open-pair unique index,
quota/accept queries and store failure translation.
"""

import unittest
import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import OperationalError

from core.exceptions import DuplicateApplication, NotFound, UpstreamUnavailable
from core.models import (
    ApplicationStatus, ExperienceLevel, PostingStatus, RemotePreference,
    Visibility, utcnow,
)
from database.init_db import init_db
from database.models import CandidateProfileRecord, JobApplicationRecord, JobPostingRecord
from database.repositories import (
    BaseRepository, CandidateRepository, PostingRepository,
    candidate_to_snapshot, posting_to_snapshot,
)
from tests import SqliteTestDatabase


class TestSnapshotConversion(unittest.TestCase):

    def test_candidate_snapshot(self):
        record = CandidateProfileRecord(
            id=uuid.uuid4(),
            role='junior',
            account_status='active',
            primary_specialty="Cardiology",
            subspecialties=["Echocardiography"],
            years_of_experience=4,
            skills=["ECG", "Echo"],
            verification_status='verified',
            rating_average=Decimal("4.50"),
            rating_count=3,
            preferred_categories=["consultation"],
            preferred_budget_min=Decimal("100"),
            remote_work_preference=None,
            seeking_opportunities=True,
        )

        snapshot = candidate_to_snapshot(record)

        self.assertTrue(snapshot.is_verified)
        self.assertEqual(snapshot.rating, 4.5)
        self.assertEqual(snapshot.skills, frozenset({"ECG", "Echo"}))
        self.assertEqual(snapshot.preferences.budget_min, 100.0)
        self.assertIsNone(snapshot.preferences.budget_max)
        self.assertIs(snapshot.preferences.remote_preference, RemotePreference.REMOTE_ONLY)
        self.assertFalse(snapshot.has_active_subscription)

    def test_posting_snapshot(self):
        record = JobPostingRecord(
            id=uuid.uuid4(),
            owner_id=uuid.uuid4(),
            title="Second opinion",
            specialty="Radiology",
            skills_required=None,
            experience_level='Mid-Level',
            location_preference='moon',
            visibility='unlisted',
            status='paused',
            budget_amount=Decimal("250.00"),
        )

        snapshot = posting_to_snapshot(record)

        self.assertIs(snapshot.experience_level, ExperienceLevel.MID_LEVEL)
        self.assertIsNone(snapshot.location_preference)
        self.assertIs(snapshot.visibility, Visibility.PUBLIC)
        self.assertIs(snapshot.status, PostingStatus.PAUSED)
        self.assertEqual(snapshot.required_skills, frozenset())
        self.assertEqual(snapshot.budget_amount, 250.0)


class TestRepositoriesOnSqlite(unittest.TestCase):

    def setUp(self):
        self.db = SqliteTestDatabase()
        self.addCleanup(self.db.close)
        self.candidate = self.db.add_candidate()
        self.posting = self.db.add_posting()

    def _create(self, uow, candidate_id=None):
        return uow.applications.create(
            candidate_id=candidate_id or self.candidate.id,
            posting_id=self.posting.id,
            match_score=90,
            proposal={'cover_letter': "hi"},
            applicant_notes=None,
            source='search',
        )

    def test_open_pair_index_rejects_duplicates(self):
        with self.db.uow_factory() as uow:
            first_id = self._create(uow).id

        with self.assertRaises(DuplicateApplication):
            with self.db.uow_factory() as uow:
                self._create(uow)

        self.db.set_application_status(first_id, 'withdrawn')
        with self.db.uow_factory() as uow:
            second = self._create(uow)
            self.assertNotEqual(second.id, first_id)

    def test_rejected_application_still_blocks_pair(self):
        with self.db.uow_factory() as uow:
            first_id = self._create(uow).id
        self.db.set_application_status(first_id, 'rejected')

        with self.db.uow_factory() as uow:
            self.assertIsNotNone(uow.applications.find_open_for_pair(self.candidate.id, self.posting.id))

    def test_count_submitted_since(self):
        other = self.db.add_candidate()
        with self.db.uow_factory() as uow:
            self._create(uow)
            yesterday_id = self._create(uow, other.id).id
        self.db.update(JobApplicationRecord, yesterday_id, candidate_id=self.candidate.id,
                       created_at=utcnow() - timedelta(days=1), status='withdrawn')

        midnight = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        with self.db.uow_factory() as uow:
            self.assertEqual(uow.applications.count_submitted_since(self.candidate.id, midnight), 1)
            self.assertEqual(
                uow.applications.count_submitted_since(self.candidate.id, midnight - timedelta(days=2)), 2,
            )

    def test_has_accepted(self):
        with self.db.uow_factory() as uow:
            application_id = self._create(uow).id
        self.db.set_application_status(application_id, ApplicationStatus.ACCEPTED.value)

        with self.db.uow_factory() as uow:
            self.assertTrue(uow.applications.has_accepted(self.posting.id))
            self.assertFalse(uow.applications.has_accepted(self.posting.id, exclude_id=application_id))

    def test_list_open_rivals(self):
        second, third = self.db.add_candidate(), self.db.add_candidate()
        with self.db.uow_factory() as uow:
            chosen = self._create(uow).id
            rival = self._create(uow, second.id).id
            withdrawn = self._create(uow, third.id).id
        self.db.set_application_status(withdrawn, 'withdrawn')

        with self.db.uow_factory() as uow:
            rivals = uow.applications.list_open_rivals(self.posting.id, exclude_id=chosen)
            self.assertEqual([r.id for r in rivals], [rival])

    def test_list_open_postings(self):
        self.db.add_posting(status='paused')
        self.db.add_posting(deadline=utcnow() - timedelta(minutes=5))
        no_deadline = self.db.add_posting(deadline=None)

        with self.db.uow_factory() as uow:
            ids = {p.id for p in uow.postings.list_open_postings(utcnow())}
        self.assertEqual(ids, {self.posting.id, no_deadline.id})

    def test_guard_accepting(self):
        paused = self.db.add_posting(status='paused')
        with self.db.uow_factory() as uow:
            self.assertTrue(uow.postings.guard_accepting(self.posting.id))
            self.assertFalse(uow.postings.guard_accepting(paused.id))

    def test_unknown_ids(self):
        with self.db.uow_factory() as uow:
            with self.assertRaises(NotFound):
                uow.candidates.get_candidate(uuid.uuid4())
            with self.assertRaises(NotFound):
                uow.postings.get_record(uuid.uuid4())
            with self.assertRaises(NotFound):
                uow.applications.get_record(uuid.uuid4())

    def test_seeking_candidates_only(self):
        self.db.add_candidate(seeking_opportunities=False)
        self.db.add_candidate(role='admin')
        with self.db.uow_factory() as uow:
            ids = [c.id for c in uow.candidates.list_seeking_candidates()]
        self.assertEqual(ids, [self.candidate.id])


class TestStoreFailures(unittest.TestCase):

    def test_driver_error_becomes_upstream_unavailable(self):
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("canceling statement due to statement timeout"))

        with self.assertRaises(UpstreamUnavailable):
            CandidateRepository(session).get_candidate(uuid.uuid4(), timeout=1)
        with self.assertRaises(UpstreamUnavailable):
            PostingRepository(session).list_open_postings(utcnow())

    def test_statement_timeout_on_postgresql(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = 'postgresql'

        BaseRepository(session).apply_read_timeout(2.5)

        statement = session.execute.call_args[0][0]
        self.assertEqual(str(statement), "SET LOCAL statement_timeout = 2500")

    def test_no_statement_timeout_elsewhere(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = 'sqlite'

        BaseRepository(session).apply_read_timeout(2.5)
        BaseRepository(session).apply_read_timeout(None)

        session.execute.assert_not_called()


class TestInitDb(unittest.TestCase):

    def test_creates_engine_tables(self):
        engine = create_engine("sqlite://")
        init_db(bind=engine)
        tables = set(inspect(engine).get_table_names())
        self.assertEqual(tables, {'candidate_profile', 'job_posting', 'job_application'})


if __name__ == '__main__':
    unittest.main()
