#!/usr/bin/env python3
"""
Tests for the application and posting transition tables.
"""

import unittest

from core.exceptions import Forbidden, IllegalTransition, ValidationError
from core.lifecycle.transitions import (
    APPLICATION_TRANSITIONS, POSTING_TRANSITIONS, coerce_enum, is_terminal,
    validate_application_transition, validate_force_close,
    validate_posting_transition,
)
from core.models import ActorRole, ApplicationStatus, PostingStatus

A = ApplicationStatus
P = PostingStatus


class TestApplicationTransitions(unittest.TestCase):

    def test_table_covers_every_status(self):
        self.assertEqual(set(APPLICATION_TRANSITIONS), set(ApplicationStatus))

    def test_terminal_states(self):
        terminal = {s for s in ApplicationStatus if is_terminal(s)}
        self.assertEqual(terminal, {A.REJECTED, A.WITHDRAWN, A.COMPLETED})

    def test_employer_edges(self):
        for current, target in [
            (A.SUBMITTED, A.UNDER_REVIEW),
            (A.UNDER_REVIEW, A.SHORTLISTED),
            (A.SHORTLISTED, A.INTERVIEW_SCHEDULED),
            (A.SHORTLISTED, A.ACCEPTED),
            (A.INTERVIEW_SCHEDULED, A.ACCEPTED),
            (A.ACCEPTED, A.COMPLETED),
            (A.UNDER_REVIEW, A.REJECTED),
        ]:
            validate_application_transition(current, target, ActorRole.EMPLOYER)

    def test_applicant_edges(self):
        validate_application_transition(A.DRAFT, A.SUBMITTED, ActorRole.APPLICANT)
        validate_application_transition(A.SUBMITTED, A.WITHDRAWN, ActorRole.APPLICANT)

    def test_submitted_to_accepted_is_illegal(self):
        with self.assertRaises(IllegalTransition) as ctx:
            validate_application_transition(A.SUBMITTED, A.ACCEPTED, ActorRole.EMPLOYER)
        self.assertEqual(ctx.exception.current, A.SUBMITTED)
        self.assertEqual(ctx.exception.target, A.ACCEPTED)
        self.assertEqual(ctx.exception.allowed, ['rejected', 'under_review', 'withdrawn'])
        self.assertEqual(ctx.exception.code, 'illegal_transition')

    def test_no_edges_out_of_terminal_states(self):
        for current in (A.REJECTED, A.WITHDRAWN, A.COMPLETED):
            with self.assertRaises(IllegalTransition):
                validate_application_transition(current, A.UNDER_REVIEW, ActorRole.EMPLOYER)

    def test_applicant_cannot_shortlist(self):
        with self.assertRaises(Forbidden):
            validate_application_transition(A.UNDER_REVIEW, A.SHORTLISTED, ActorRole.APPLICANT)

    def test_employer_cannot_withdraw(self):
        with self.assertRaises(Forbidden):
            validate_application_transition(A.SUBMITTED, A.WITHDRAWN, ActorRole.EMPLOYER)

    def test_authority_checked_before_edge(self):
        # Edge also illegal, but the actor has no authority at all
        with self.assertRaises(Forbidden):
            validate_application_transition(A.COMPLETED, A.SHORTLISTED, ActorRole.APPLICANT)

    def test_system_may_only_reject(self):
        validate_application_transition(A.INTERVIEW_SCHEDULED, A.REJECTED, ActorRole.SYSTEM)
        with self.assertRaises(Forbidden):
            validate_application_transition(A.SUBMITTED, A.UNDER_REVIEW, ActorRole.SYSTEM)


class TestPostingTransitions(unittest.TestCase):

    def test_owner_table(self):
        validate_posting_transition(P.DRAFT, P.ACTIVE)
        validate_posting_transition(P.ACTIVE, P.PAUSED)
        validate_posting_transition(P.PAUSED, P.ACTIVE)
        validate_posting_transition(P.CLOSED, P.ACTIVE)
        validate_posting_transition(P.ACTIVE, P.COMPLETED)
        self.assertEqual(POSTING_TRANSITIONS[P.COMPLETED], frozenset())

    def test_illegal_posting_edges(self):
        for current, target in [(P.DRAFT, P.PAUSED), (P.CLOSED, P.PAUSED), (P.COMPLETED, P.ACTIVE)]:
            with self.assertRaises(IllegalTransition):
                validate_posting_transition(current, target)

    def test_force_close_override(self):
        for current in (P.DRAFT, P.ACTIVE, P.PAUSED, P.CLOSED):
            validate_force_close(current)
        with self.assertRaises(IllegalTransition):
            validate_force_close(P.COMPLETED)


class TestCoerceEnum(unittest.TestCase):

    def test_parses_strings(self):
        self.assertEqual(coerce_enum(ApplicationStatus, "Under_Review", "status"), A.UNDER_REVIEW)
        self.assertEqual(coerce_enum(ActorRole, ActorRole.EMPLOYER, "role"), ActorRole.EMPLOYER)

    def test_unknown_value(self):
        with self.assertRaises(ValidationError):
            coerce_enum(ApplicationStatus, "hired", "status")


if __name__ == '__main__':
    unittest.main()
