import contextlib
import logging
from typing import Callable, Iterator, List, Optional

from sqlalchemy.orm import Session

from core.models import LifecycleEvent
from database.database import SessionLocal
from database.repositories import ApplicationRepository, CandidateRepository, PostingRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Repositories sharing one Session, plus the lifecycle events produced
    while it was open. Events are only meaningful once the session commits.
    """

    def __init__(self, session: Session):
        self.session = session
        self.candidates = CandidateRepository(session)
        self.postings = PostingRepository(session)
        self.applications = ApplicationRepository(session)
        self.events: List[LifecycleEvent] = []

    def collect(self, event: LifecycleEvent) -> None:
        self.events.append(event)


@contextlib.contextmanager
def engine_uow(session_factory: Optional[Callable[[], Session]] = None) -> Iterator[UnitOfWork]:
    """Per-unit-of-work transaction scope.

    Yields a UnitOfWork bound to a fresh Session. Commits on success,
    rolls back on exception, always closes.

    Usage:
        with engine_uow() as uow:
            record = uow.applications.get_record(application_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    session = (session_factory or SessionLocal)()
    try:
        uow = UnitOfWork(session)
        yield uow
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
