#!/usr/bin/env python3
"""
Posting lifecycle tests: owner/admin status changes and bulk updates.
"""

import unittest
import uuid

from core.engine import MatchingEngine
from core.exceptions import Forbidden, IllegalTransition, NotFound, ValidationError
from core.models import PostingStatus
from notification.sink import LoggingNotificationSink
from tests import SqliteTestDatabase


class TestPostingLifecycle(unittest.TestCase):

    def setUp(self):
        self.db = SqliteTestDatabase()
        self.addCleanup(self.db.close)
        self.sink = LoggingNotificationSink(record=True)
        self.engine = MatchingEngine(uow_factory=self.db.uow_factory, sink=self.sink)
        self.owner_id = uuid.uuid4()
        self.posting = self.db.add_posting(owner_id=self.owner_id, status='draft')

    def test_owner_publishes_and_pauses(self):
        snapshot = self.engine.transition_posting(self.posting.id, 'active', self.owner_id)
        self.assertEqual(snapshot.status, PostingStatus.ACTIVE)

        snapshot = self.engine.transition_posting(self.posting.id, 'paused', self.owner_id)
        self.assertEqual(snapshot.status, PostingStatus.PAUSED)
        self.assertEqual(self.db.get_posting(self.posting.id).status, 'paused')

    def test_admin_may_change_any_posting(self):
        snapshot = self.engine.transition_posting(self.posting.id, 'active', uuid.uuid4(), actor_role='admin')
        self.assertEqual(snapshot.status, PostingStatus.ACTIVE)

    def test_non_owner_forbidden(self):
        with self.assertRaises(Forbidden):
            self.engine.transition_posting(self.posting.id, 'active', uuid.uuid4())
        with self.assertRaises(Forbidden):
            self.engine.transition_posting(self.posting.id, 'active', None)
        self.assertEqual(self.db.get_posting(self.posting.id).status, 'draft')

    def test_illegal_edges(self):
        with self.assertRaises(IllegalTransition) as ctx:
            self.engine.transition_posting(self.posting.id, 'paused', self.owner_id)
        self.assertEqual(ctx.exception.allowed, ['active', 'closed'])

        self.engine.transition_posting(self.posting.id, 'active', self.owner_id)
        self.engine.transition_posting(self.posting.id, 'completed', self.owner_id)
        with self.assertRaises(IllegalTransition):
            self.engine.transition_posting(self.posting.id, 'active', self.owner_id)

    def test_closed_posting_can_reopen(self):
        self.engine.transition_posting(self.posting.id, 'closed', self.owner_id)
        snapshot = self.engine.transition_posting(self.posting.id, 'active', self.owner_id)
        self.assertEqual(snapshot.status, PostingStatus.ACTIVE)

    def test_unknown_status_and_posting(self):
        with self.assertRaises(ValidationError):
            self.engine.transition_posting(self.posting.id, 'archived', self.owner_id)
        with self.assertRaises(NotFound):
            self.engine.transition_posting(uuid.uuid4(), 'active', self.owner_id)

    def test_transition_event(self):
        self.engine.transition_posting(self.posting.id, 'active', self.owner_id)

        self.assertEqual(len(self.sink.events), 1)
        event = self.sink.events[0]
        self.assertEqual(event.event_type, 'posting_status_changed')
        self.assertEqual((event.from_status, event.to_status), ('draft', 'active'))
        self.assertEqual(event.recipients, [self.owner_id])


class TestBulkTransition(unittest.TestCase):

    def setUp(self):
        self.db = SqliteTestDatabase()
        self.addCleanup(self.db.close)
        self.engine = MatchingEngine(uow_factory=self.db.uow_factory)
        self.owner_id = uuid.uuid4()

    def test_mixed_outcomes(self):
        active = self.db.add_posting(owner_id=self.owner_id)
        completed = self.db.add_posting(owner_id=self.owner_id, status='completed')
        foreign = self.db.add_posting()
        missing = uuid.uuid4()

        outcomes = self.engine.bulk_transition_postings(
            [active.id, completed.id, foreign.id, missing, "not-a-uuid"], 'paused', self.owner_id,
        )

        self.assertEqual([o.ok for o in outcomes], [True, False, False, False, False])
        self.assertEqual(outcomes[0].status, 'paused')
        self.assertEqual(outcomes[1].error, 'illegal_transition')
        self.assertEqual(outcomes[2].error, 'forbidden')
        self.assertEqual(outcomes[3].error, 'not_found')
        self.assertEqual(outcomes[4].error, 'validation_error')
        self.assertEqual(self.db.get_posting(active.id).status, 'paused')
        self.assertEqual(self.db.get_posting(foreign.id).status, 'active')

    def test_bulk_target_restricted(self):
        posting = self.db.add_posting(owner_id=self.owner_id)
        with self.assertRaises(ValidationError):
            self.engine.bulk_transition_postings([posting.id], 'completed', self.owner_id)
        self.assertEqual(self.db.get_posting(posting.id).status, 'active')

    def test_empty_list_rejected(self):
        with self.assertRaises(ValidationError):
            self.engine.bulk_transition_postings([], 'closed', self.owner_id)


if __name__ == '__main__':
    unittest.main()
