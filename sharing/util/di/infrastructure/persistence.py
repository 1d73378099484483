"""Persistence infrastructure providers."""

from dishka import Scope, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from sharing.config import Settings
from sharing.domain.repository import EntityStore
from sharing.persistence.database import create_engine, create_session_factory
from sharing.persistence.repository import PostgresEntityStore
from sharing.util.di.base import ProviderBase
from sharing.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL."""

    __is_mock__ = False

    scope = Scope.APP

    @provide(scope=Scope.APP)
    def get_engine(self, settings: Settings) -> AsyncEngine:
        """Provide database engine."""
        engine = create_engine(settings)
        # Instrument SQLAlchemy for observability
        instrument_sqlalchemy(engine)
        return engine

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        """Provide session factory."""
        return create_session_factory(engine)

    @provide(scope=Scope.APP)
    def get_entity_store(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> EntityStore:
        """Provide entity store.

        Each store transaction opens its own session, so the store is
        shared across requests.
        """
        return PostgresEntityStore(session_factory)
