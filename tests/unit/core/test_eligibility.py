#!/usr/bin/env python3
"""
Tests for the default eligibility gate.
"""

import unittest
from datetime import timedelta

from core.config_loader import LifecycleConfig
from core.eligibility import DefaultEligibilityGate
from core.models import (
    AccountStatus, PostingStatus, UserRole, VerificationTier, Visibility, utcnow,
)
from tests import make_candidate, make_posting


class TestDefaultEligibilityGate(unittest.TestCase):

    def setUp(self):
        self.gate = DefaultEligibilityGate()

    def test_eligible(self):
        result = self.gate.can_apply(make_candidate(), make_posting(), applications_today=0)
        self.assertTrue(result.ok)
        self.assertEqual(result.reasons, [])

    def test_collects_every_reason(self):
        candidate = make_candidate(
            role=UserRole.SENIOR,
            account_status=AccountStatus.SUSPENDED,
            seeking_opportunities=False,
        )
        result = self.gate.can_apply(candidate, make_posting(status=PostingStatus.PAUSED))
        self.assertFalse(result.ok)
        self.assertEqual(len(result.reasons), 4)
        self.assertIn("Job is not accepting applications", result.reasons)

    def test_expired_deadline(self):
        posting = make_posting(deadline=utcnow() - timedelta(minutes=1))
        result = self.gate.can_apply(make_candidate(), posting)
        self.assertEqual(result.reasons, ["Job deadline has passed"])

    def test_visibility(self):
        verified_only = make_posting(visibility=Visibility.VERIFIED_ONLY)
        self.assertFalse(self.gate.can_apply(make_candidate(), verified_only).ok)
        self.assertTrue(
            self.gate.can_apply(make_candidate(verification=VerificationTier.VERIFIED), verified_only).ok
        )
        self.assertFalse(self.gate.can_apply(make_candidate(), make_posting(visibility=Visibility.INVITATION_ONLY)).ok)

    def test_minimum_years(self):
        result = self.gate.can_apply(make_candidate(years_of_experience=1), make_posting(minimum_years=3))
        self.assertEqual(result.reasons, ["Minimum 3 years of experience required"])

    def test_daily_limits_by_standing(self):
        self.assertEqual(self.gate.daily_limit(make_candidate()), 5)
        self.assertEqual(self.gate.daily_limit(make_candidate(has_active_subscription=True)), 10)
        self.assertEqual(self.gate.daily_limit(make_candidate(verification=VerificationTier.VERIFIED)), 15)

    def test_quota_exhausted(self):
        result = self.gate.can_apply(make_candidate(), make_posting(), applications_today=5)
        self.assertEqual(result.reasons, ["Daily application limit reached (5/5)"])

    def test_configured_limit(self):
        gate = DefaultEligibilityGate(LifecycleConfig(daily_application_limit_default=1))
        self.assertFalse(gate.can_apply(make_candidate(), make_posting(), applications_today=1).ok)

    def test_clock_is_injectable(self):
        posting = make_posting(deadline=utcnow() + timedelta(days=1))
        gate = DefaultEligibilityGate(clock=lambda: utcnow() + timedelta(days=2))
        self.assertEqual(gate.can_apply(make_candidate(), posting).reasons, ["Job deadline has passed"])


if __name__ == '__main__':
    unittest.main()
