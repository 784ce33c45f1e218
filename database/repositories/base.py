import contextlib
import logging
from typing import Iterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from core.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)


class BaseRepository:
    def __init__(self, db: Session):
        self.db = db

    def apply_read_timeout(self, timeout: Optional[float]) -> None:
        """Bound the remaining statements of this transaction on PostgreSQL."""
        if not timeout or self.db.get_bind().dialect.name != 'postgresql':
            return
        self.db.execute(text(f"SET LOCAL statement_timeout = {max(1, int(timeout * 1000))}"))

    @contextlib.contextmanager
    def upstream_read(self, what: str, timeout: Optional[float] = None) -> Iterator[None]:
        """Translate driver failures and statement timeouts into UpstreamUnavailable."""
        try:
            self.apply_read_timeout(timeout)
            yield
        except DBAPIError as e:
            logger.error(f"Store read failed for {what}: {e}")
            raise UpstreamUnavailable(f"Could not read {what}") from e
