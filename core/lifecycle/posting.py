"""
Posting Lifecycle - Owner-driven posting status changes and the accept-cascade.

The cascade runs inside the caller's unit of work so that the accepted
application, the closed posting and the rejected rivals commit together.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from core.exceptions import EngineException, Forbidden, ValidationError
from core.lifecycle.events import application_event, emit_events, posting_event
from core.lifecycle.transitions import (
    POSTING_BULK_TARGETS, coerce_enum, validate_application_transition,
    validate_force_close, validate_posting_transition,
)
from core.models import (
    ActorRole, Application, ApplicationStatus, CommunicationEntry,
    CommunicationType, PostingSnapshot, PostingStatus, coerce_id, utcnow,
)
from core.ports import NotificationSink
from database.repositories import posting_to_snapshot
from database.uow import UnitOfWork, engine_uow

logger = logging.getLogger(__name__)

HIRED_MESSAGE = "Application accepted - you've been hired!"
POSITION_FILLED_MESSAGE = "Application rejected - position filled"


@dataclass
class AcceptResult:
    application: Application
    posting: PostingSnapshot
    rejected_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'application': self.application.to_dict(),
            'posting': {
                'id': str(self.posting.id),
                'status': self.posting.status.value,
            },
            'rejected_count': self.rejected_count,
        }


@dataclass
class PostingOutcome:
    """Per-posting result of a bulk status change."""
    posting_id: Any
    ok: bool
    status: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: (str(v) if k == 'posting_id' else v) for k, v in self.__dict__.items()}


class PostingLifecycle:
    def __init__(
        self,
        uow_factory: Optional[Callable] = None,
        sink: Optional[NotificationSink] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self._uow = uow_factory or engine_uow
        self.sink = sink
        self._clock = clock

    def get(self, posting_id: Any) -> PostingSnapshot:
        posting_id = coerce_id(posting_id, 'posting')
        with self._uow() as uow:
            return uow.postings.get_posting(posting_id)

    def transition(
        self,
        posting_id: Any,
        target,
        actor_id: Any,
        actor_role=ActorRole.EMPLOYER
    ) -> PostingSnapshot:
        """
        Owner-initiated status change.

        Raises:
            NotFound: unknown posting
            Forbidden: actor is neither the owner nor an admin
            IllegalTransition: edge not in the posting table
        """
        posting_id = coerce_id(posting_id, 'posting')
        target = coerce_enum(PostingStatus, target, 'posting status')
        actor_role = coerce_enum(ActorRole, actor_role, 'actor role')

        with self._uow() as uow:
            record = uow.postings.get_record(posting_id, for_update=True)
            self._check_owner(record, actor_id, actor_role)

            current = PostingStatus(record.status)
            validate_posting_transition(current, target)
            uow.postings.apply_status(record, target)

            uow.collect(posting_event('posting_status_changed', record, current.value, actor_role))
            snapshot = posting_to_snapshot(record)

        logger.info(f"Posting {posting_id}: {current.value} -> {target.value}")
        emit_events(self.sink, uow.events)
        return snapshot

    def bulk_transition(
        self,
        posting_ids: Iterable[Any],
        target,
        actor_id: Any,
        actor_role=ActorRole.EMPLOYER
    ) -> List[PostingOutcome]:
        """
        Apply the same status to several postings, each in its own unit of work.

        A failure on one posting is reported in its outcome and does not
        affect the others.
        """
        target = coerce_enum(PostingStatus, target, 'posting status')
        if target not in POSTING_BULK_TARGETS:
            raise ValidationError(
                f"Bulk updates only support: {', '.join(sorted(s.value for s in POSTING_BULK_TARGETS))}"
            )
        posting_ids = list(posting_ids or [])
        if not posting_ids:
            raise ValidationError("posting_ids must be a non-empty list")

        outcomes = []
        for posting_id in posting_ids:
            try:
                snapshot = self.transition(posting_id, target, actor_id, actor_role)
                outcomes.append(PostingOutcome(posting_id, ok=True, status=snapshot.status.value))
            except EngineException as e:
                logger.warning(f"Bulk update skipped posting {posting_id}: {e}")
                outcomes.append(PostingOutcome(posting_id, ok=False, error=e.code, message=str(e)))

        updated = sum(1 for o in outcomes if o.ok)
        logger.info(f"Bulk posting update to {target.value}: {updated}/{len(outcomes)} updated")
        return outcomes

    def close_for_accept(
        self,
        uow: UnitOfWork,
        posting_record,
        application_record,
        contract_details: Dict[str, Any],
        now: datetime
    ) -> int:
        """
        Accept-cascade. Called only by ApplicationLifecycle.accept, inside its
        unit of work and while it holds the posting lock.

        1. application -> accepted, with contract details and signed date
        2. posting -> closed via the administrative override edge
        3. every other open application -> rejected, with a system log entry

        Returns:
            Number of rival applications rejected
        """
        posting_from = PostingStatus(posting_record.status)
        validate_force_close(posting_from)

        app_from = application_record.status
        contract = dict(application_record.contract_details or {})
        contract.update(contract_details or {})
        contract['signed_date'] = now.isoformat()

        uow.applications.apply_status(
            application_record,
            ApplicationStatus.ACCEPTED,
            CommunicationEntry(CommunicationType.STATUS_CHANGE, HIRED_MESSAGE, ActorRole.EMPLOYER, now),
            contract_details=contract,
        )
        uow.collect(application_event(
            'application_accepted', application_record, posting_record.owner_id,
            app_from, ActorRole.EMPLOYER, contract_details=contract,
        ))

        # Always written so the version check catches a concurrent writer
        uow.postings.apply_status(posting_record, PostingStatus.CLOSED)
        if posting_from is not PostingStatus.CLOSED:
            uow.collect(posting_event(
                'posting_status_changed', posting_record, posting_from.value,
                ActorRole.SYSTEM, reason='position_filled',
            ))

        rivals = uow.applications.list_open_rivals(posting_record.id, exclude_id=application_record.id)
        for rival in rivals:
            rival_from = ApplicationStatus(rival.status)
            validate_application_transition(rival_from, ApplicationStatus.REJECTED, ActorRole.SYSTEM)
            uow.applications.apply_status(
                rival,
                ApplicationStatus.REJECTED,
                CommunicationEntry(CommunicationType.STATUS_CHANGE, POSITION_FILLED_MESSAGE, ActorRole.SYSTEM, now),
            )
            uow.collect(application_event(
                'application_rejected', rival, posting_record.owner_id,
                rival_from.value, ActorRole.SYSTEM, reason='position_filled',
            ))

        logger.info(
            f"Accepted application {application_record.id} on posting {posting_record.id}; "
            f"rejected {len(rivals)} other application(s)"
        )
        return len(rivals)

    def _check_owner(self, record, actor_id: Any, actor_role: ActorRole) -> None:
        if actor_role is ActorRole.ADMIN:
            return
        if actor_id is None or str(actor_id) != str(record.owner_id):
            raise Forbidden(f"Only the owner may change the status of posting {record.id}")
