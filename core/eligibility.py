"""
Default eligibility rules for submitting an application.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from core.config_loader import LifecycleConfig
from core.models import (
    AccountStatus, CandidateProfile, PostingSnapshot, PostingStatus,
    UserRole, Visibility, utcnow,
)
from core.ports import EligibilityGate, EligibilityResult

logger = logging.getLogger(__name__)


class DefaultEligibilityGate(EligibilityGate):
    """
    Collects every reason a candidate may not apply, rather than stopping at the first.

    Daily quota depends on the candidate's standing: verified accounts get
    the highest limit, then active subscribers, then everyone else.
    """

    def __init__(self, config: Optional[LifecycleConfig] = None, clock: Callable[[], datetime] = utcnow):
        self.config = config or LifecycleConfig()
        self._clock = clock

    def daily_limit(self, candidate: CandidateProfile) -> int:
        if candidate.is_verified:
            return self.config.daily_application_limit_verified
        if candidate.has_active_subscription:
            return self.config.daily_application_limit_subscribed
        return self.config.daily_application_limit_default

    def can_apply(self, candidate: CandidateProfile, posting: PostingSnapshot, applications_today: int = 0) -> EligibilityResult:
        reasons = []

        if candidate.role is not UserRole.JUNIOR:
            reasons.append("Only junior doctors can apply to jobs")

        if candidate.account_status is not AccountStatus.ACTIVE:
            reasons.append("Account must be active to apply to jobs")

        if not candidate.seeking_opportunities:
            reasons.append("User is not currently seeking opportunities")

        if posting.status is not PostingStatus.ACTIVE:
            reasons.append("Job is not accepting applications")
        elif posting.is_expired(self._clock()):
            reasons.append("Job deadline has passed")

        if posting.visibility is Visibility.VERIFIED_ONLY and not candidate.is_verified:
            reasons.append("Verified account required for this job")
        elif posting.visibility is Visibility.INVITATION_ONLY:
            reasons.append("This job is by invitation only")

        minimum = posting.minimum_years or 0
        if minimum > (candidate.years_of_experience or 0):
            reasons.append(f"Minimum {minimum} years of experience required")

        limit = self.daily_limit(candidate)
        if applications_today >= limit:
            reasons.append(f"Daily application limit reached ({applications_today}/{limit})")

        if reasons:
            logger.info(f"Candidate {candidate.id} not eligible for posting {posting.id}: {reasons}")

        return EligibilityResult(ok=not reasons, reasons=reasons)
