"""
Application Lifecycle - Submission and every status change of an application.

All writes go through a unit of work; lifecycle events are handed to the
notification sink only after that unit of work has committed.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm.exc import StaleDataError

from core.exceptions import (
    AlreadyRated, ConcurrentAcceptConflict, DuplicateApplication, Forbidden,
    NotEligible, ValidationError,
)
from core.lifecycle.events import application_event, emit_events
from core.lifecycle.locks import PostingLockRegistry
from core.lifecycle.posting import AcceptResult, PostingLifecycle
from core.lifecycle.transitions import (
    APPLICATION_AUTHORITY, coerce_enum, validate_application_transition,
)
from core.models import (
    ActorRole, Application, ApplicationStatus, CommunicationEntry,
    CommunicationType, coerce_id, ensure_utc, utcnow,
)
from core.ports import EligibilityGate, NotificationSink
from core.requests import ContractDetails, InterviewRequest, Proposal, dump_payload, parse_payload
from core.scorer import MatchScorer
from database.repositories import application_to_view, posting_to_snapshot
from database.uow import engine_uow

logger = logging.getLogger(__name__)

_PARTIES = (ActorRole.EMPLOYER, ActorRole.APPLICANT)


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def status_change_message(target: ApplicationStatus, notes: Optional[str] = None) -> str:
    message = f"Application status changed to {target.value}"
    if notes:
        message += f". Notes: {notes}"
    return message


class ApplicationLifecycle:
    """
    Owns application status. Nothing else in the engine writes it.
    """

    def __init__(
        self,
        scorer: MatchScorer,
        gate: EligibilityGate,
        postings: PostingLifecycle,
        uow_factory: Optional[Callable] = None,
        sink: Optional[NotificationSink] = None,
        locks: Optional[PostingLockRegistry] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.scorer = scorer
        self.gate = gate
        self.postings = postings
        self._uow = uow_factory or engine_uow
        self.sink = sink
        self.locks = locks or PostingLockRegistry()
        self._clock = clock

    def get(self, application_id: Any) -> Application:
        application_id = coerce_id(application_id, 'application')
        with self._uow() as uow:
            return application_to_view(uow.applications.get_record(application_id))

    def submit(
        self,
        candidate_id: Any,
        posting_id: Any,
        proposal,
        applicant_notes: Optional[str] = None,
        source: str = "search"
    ) -> Application:
        """
        Create an application in ``submitted`` with its match score.

        Raises:
            ValidationError: malformed proposal
            NotFound: unknown candidate or posting
            DuplicateApplication: a non-withdrawn application exists for the pair
            NotEligible: the eligibility gate refused, with its reasons
        """
        candidate_id = coerce_id(candidate_id, 'candidate')
        posting_id = coerce_id(posting_id, 'posting')
        proposal = dump_payload(parse_payload(Proposal, proposal, 'proposal'))
        now = self._clock()

        with self._uow() as uow:
            # Row lock holds off a concurrent pause/close until we commit
            posting_record = uow.postings.get_record(posting_id, for_update=True)
            posting = posting_to_snapshot(posting_record)
            candidate = uow.candidates.get_candidate(candidate_id)

            if uow.applications.find_open_for_pair(candidate_id, posting_id) is not None:
                raise DuplicateApplication(
                    f"Candidate {candidate_id} already has an application for posting {posting_id}"
                )

            applications_today = uow.applications.count_submitted_since(candidate_id, start_of_day(now))
            eligibility = self.gate.can_apply(candidate, posting, applications_today)
            if not eligibility.ok:
                raise NotEligible(eligibility.reasons)

            score = self.scorer.score(candidate, posting)
            record = uow.applications.create(
                candidate_id=candidate_id,
                posting_id=posting_id,
                match_score=score,
                proposal=proposal,
                applicant_notes=applicant_notes,
                source=source,
                log=[CommunicationEntry(
                    CommunicationType.STATUS_CHANGE, "Application submitted", ActorRole.APPLICANT, now,
                )],
            )

            if not uow.postings.guard_accepting(posting_id):
                raise NotEligible(["Job is not accepting applications"])

            uow.collect(application_event(
                'application_submitted', record, posting.owner_id, None,
                ActorRole.APPLICANT, match_score=score,
            ))
            view = application_to_view(record)

        logger.info(f"Candidate {candidate_id} applied to posting {posting_id} (score {score})")
        emit_events(self.sink, uow.events)
        return view

    def transition(
        self,
        application_id: Any,
        target,
        actor_role,
        notes: Optional[str] = None,
        actor_id: Any = None
    ) -> Application:
        """
        Move an application along one edge of the transition table.

        ``accepted`` is routed through accept() so the cascade always runs.

        Raises:
            Forbidden: actor_role lacks authority for the target, or actor_id
                is not the party it claims to be
            IllegalTransition: edge not in the table; status is left unchanged
        """
        application_id = coerce_id(application_id, 'application')
        target = coerce_enum(ApplicationStatus, target, 'application status')
        actor_role = coerce_enum(ActorRole, actor_role, 'actor role')

        if actor_role is ActorRole.SYSTEM:
            raise Forbidden("System transitions are internal to the engine")

        if target is ApplicationStatus.ACCEPTED:
            return self.accept(application_id, actor_role=actor_role, actor_id=actor_id).application

        fields = {}
        if notes and actor_role is ActorRole.EMPLOYER:
            fields['employer_notes'] = notes

        return self._apply(
            application_id, target, actor_role, actor_id,
            entry_type=CommunicationType.STATUS_CHANGE,
            message=status_change_message(target, notes),
            event_type='application_status_changed',
            fields=fields,
        )

    def schedule_interview(
        self,
        application_id: Any,
        scheduled_at,
        meeting_link: str = "",
        notes: str = "",
        actor_role=ActorRole.EMPLOYER,
        actor_id: Any = None
    ) -> Application:
        request = parse_payload(
            InterviewRequest,
            {'scheduled_at': scheduled_at, 'meeting_link': meeting_link or "", 'notes': notes or ""},
            'interview',
        )
        when = ensure_utc(request.scheduled_at)
        if when <= self._clock():
            raise ValidationError("Interview date must be in the future")

        details = {
            'scheduled_date': when.isoformat(),
            'meeting_link': request.meeting_link,
            'notes': request.notes,
            'completed': False,
        }
        return self._apply(
            application_id,
            ApplicationStatus.INTERVIEW_SCHEDULED,
            coerce_enum(ActorRole, actor_role, 'actor role'),
            actor_id,
            entry_type=CommunicationType.INTERVIEW,
            message=f"Interview scheduled for {when.isoformat()}",
            event_type='interview_scheduled',
            fields={'interview_details': details},
        )

    def withdraw(self, application_id: Any, actor_id: Any = None) -> Application:
        return self._apply(
            application_id, ApplicationStatus.WITHDRAWN, ActorRole.APPLICANT, actor_id,
            entry_type=CommunicationType.STATUS_CHANGE,
            message="Application withdrawn",
            event_type='application_withdrawn',
        )

    def accept(
        self,
        application_id: Any,
        contract_details=None,
        actor_role=ActorRole.EMPLOYER,
        actor_id: Any = None
    ) -> AcceptResult:
        """
        Hire the applicant: the application becomes ``accepted``, the posting
        is closed and every other open application on it is rejected, all in
        one unit of work.

        Raises:
            Forbidden: actor is not the posting owner
            IllegalTransition: application cannot move to ``accepted``
            ConcurrentAcceptConflict: another application on the posting is
                already accepted, or a concurrent accept won the race
        """
        application_id = coerce_id(application_id, 'application')
        actor_role = coerce_enum(ActorRole, actor_role, 'actor role')
        if actor_role not in APPLICATION_AUTHORITY[ApplicationStatus.ACCEPTED]:
            raise Forbidden(f"{actor_role.value} may not accept applications")
        contract = dump_payload(parse_payload(ContractDetails, contract_details, 'contract details'))

        with self._uow() as uow:
            posting_id = uow.applications.get_record(application_id).posting_id

        try:
            with self.locks.hold(posting_id):
                with self._uow() as uow:
                    posting_record = uow.postings.get_record(posting_id, for_update=True)
                    record = uow.applications.get_record(application_id, for_update=True)
                    self._check_actor(record, posting_record.owner_id, actor_role, actor_id)

                    if uow.applications.has_accepted(posting_id, exclude_id=record.id):
                        raise ConcurrentAcceptConflict(
                            f"Posting {posting_id} already has an accepted application"
                        )
                    validate_application_transition(
                        ApplicationStatus(record.status), ApplicationStatus.ACCEPTED, actor_role,
                    )

                    rejected = self.postings.close_for_accept(uow, posting_record, record, contract, self._clock())
                    result = AcceptResult(
                        application=application_to_view(record),
                        posting=posting_to_snapshot(posting_record),
                        rejected_count=rejected,
                    )
        except StaleDataError as e:
            logger.warning(f"Accept of application {application_id} lost a race on posting {posting_id}")
            raise ConcurrentAcceptConflict(f"Posting {posting_id} was modified concurrently") from e

        emit_events(self.sink, uow.events)
        return result

    def add_message(self, application_id: Any, author_role, content: str, actor_id: Any = None) -> Application:
        application_id = coerce_id(application_id, 'application')
        author_role = coerce_enum(ActorRole, author_role, 'actor role')
        if author_role not in _PARTIES:
            raise Forbidden("Only the applicant or the employer may post messages")
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message content is required")

        now = self._clock()
        with self._uow() as uow:
            record = uow.applications.get_record(application_id, for_update=True)
            owner_id = uow.postings.get_record(record.posting_id).owner_id
            self._check_actor(record, owner_id, author_role, actor_id)

            uow.applications.append_entry(
                record, CommunicationEntry(CommunicationType.MESSAGE, content, author_role, now)
            )
            uow.applications.save(record)
            uow.collect(application_event(
                'application_message', record, owner_id, record.status, author_role, content=content,
            ))
            view = application_to_view(record)

        emit_events(self.sink, uow.events)
        return view

    def rate(
        self,
        application_id: Any,
        rater_role,
        rating: int,
        review: str = "",
        actor_id: Any = None
    ) -> Application:
        """
        Record one party's rating of a completed engagement.

        Raises:
            ValidationError: rating outside 1..5, or application not completed
            Forbidden: rater is neither party
            AlreadyRated: this party already rated the application
        """
        application_id = coerce_id(application_id, 'application')
        rater_role = coerce_enum(ActorRole, rater_role, 'actor role')
        if rater_role not in _PARTIES:
            raise Forbidden("Only the applicant or the employer may rate an application")
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError(f"Rating must be an integer from 1 to 5, got {rating!r}")

        with self._uow() as uow:
            record = uow.applications.get_record(application_id, for_update=True)
            owner_id = uow.postings.get_record(record.posting_id).owner_id
            self._check_actor(record, owner_id, rater_role, actor_id)

            if record.status != ApplicationStatus.COMPLETED.value:
                raise ValidationError("Can only rate completed applications")

            if rater_role is ActorRole.EMPLOYER:
                if record.employer_rating is not None:
                    raise AlreadyRated(f"Employer already rated application {application_id}")
                record.employer_rating = rating
                record.employer_review = review or ""
            else:
                if record.applicant_rating is not None:
                    raise AlreadyRated(f"Applicant already rated application {application_id}")
                record.applicant_rating = rating
                record.applicant_review = review or ""

            uow.applications.save(record)
            uow.collect(application_event(
                'application_rated', record, owner_id, record.status, rater_role, rating=rating,
            ))
            view = application_to_view(record)

        emit_events(self.sink, uow.events)
        return view

    def recalculate_score(self, application_id: Any) -> Application:
        """Recompute and store the match score from current snapshots."""
        application_id = coerce_id(application_id, 'application')
        with self._uow() as uow:
            record = uow.applications.get_record(application_id, for_update=True)
            candidate = uow.candidates.get_candidate(record.candidate_id)
            posting = uow.postings.get_posting(record.posting_id)

            previous = record.match_score
            record.match_score = self.scorer.score(candidate, posting)
            uow.applications.save(record)
            view = application_to_view(record)

        logger.info(f"Application {application_id} score recalculated: {previous} -> {view.match_score}")
        return view

    def _apply(
        self,
        application_id: Any,
        target: ApplicationStatus,
        actor_role: ActorRole,
        actor_id: Any,
        entry_type: CommunicationType,
        message: str,
        event_type: str,
        fields: Optional[Dict[str, Any]] = None
    ) -> Application:
        application_id = coerce_id(application_id, 'application')
        now = self._clock()
        with self._uow() as uow:
            record = uow.applications.get_record(application_id, for_update=True)
            owner_id = uow.postings.get_record(record.posting_id).owner_id
            self._check_actor(record, owner_id, actor_role, actor_id)

            current = ApplicationStatus(record.status)
            validate_application_transition(current, target, actor_role)

            uow.applications.apply_status(
                record, target, CommunicationEntry(entry_type, message, actor_role, now), **(fields or {})
            )
            uow.collect(application_event(event_type, record, owner_id, current.value, actor_role))
            view = application_to_view(record)

        logger.info(f"Application {application_id}: {current.value} -> {target.value} by {actor_role.value}")
        emit_events(self.sink, uow.events)
        return view

    def _check_actor(self, record, owner_id: Any, actor_role: ActorRole, actor_id: Any) -> None:
        """When the caller identifies the actor, it must be the party its role names."""
        if actor_id is None:
            return
        if actor_role is ActorRole.EMPLOYER and str(actor_id) != str(owner_id):
            raise Forbidden(f"Only the posting owner may act as employer on application {record.id}")
        if actor_role is ActorRole.APPLICANT and str(actor_id) != str(record.candidate_id):
            raise Forbidden(f"Only the applicant may act on application {record.id}")
