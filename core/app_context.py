import functools
from dataclasses import dataclass
from typing import Optional

from core.config_loader import AppConfig
from core.engine import MatchingEngine
from core.ports import NotificationSink
from database.database import build_session_factory
from database.uow import engine_uow
from notification.sink import build_sink


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    This eliminates duplicate wiring code and provides a single source
    of truth for service instantiation. DB access is obtained via
    engine_uow() inside each engine operation.
    """
    config: AppConfig
    engine: MatchingEngine
    notification_sink: Optional[NotificationSink] = None

    @classmethod
    def build(cls, config: AppConfig) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration

        Returns:
            Fully wired AppContext instance (no DB session attached)
        """
        session_factory = build_session_factory(config.database.url, pool_pre_ping=True)
        uow_factory = functools.partial(engine_uow, session_factory)

        # Notification sink (only if enabled)
        notification_sink = build_sink(config.notifications)

        engine = MatchingEngine.from_config(config, uow_factory=uow_factory, sink=notification_sink)

        return cls(
            config=config,
            engine=engine,
            notification_sink=notification_sink
        )
