from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from support_desk.api.routes import health, tickets
from support_desk.core.config import Settings, get_settings
from support_desk.core.logging import configure_logging, init_tracer, shutdown_tracer
from support_desk.middleware import BearerIdentityMiddleware
from support_desk.tickets import (
    AccessPolicy,
    ActorNameResolver,
    ActorResolver,
    AdminQueryEngine,
    LinkedEntityResolver,
    MessageThread,
    NotificationDispatcher,
    TicketService,
)
from support_desk.tickets.directory import (
    DriverRepository,
    QuoteRepository,
    ReservationRepository,
    UserRepository,
)
from support_desk.tickets.repository import (
    NotificationRepository,
    TicketMessageRepository,
    TicketRepository,
)


def _to_asyncpg_dsn(dsn: str) -> str:
    """Ensure the SQLAlchemy DSN uses the asyncpg driver."""

    if dsn.startswith("postgresql+asyncpg://"):
        return dsn
    if dsn.startswith("postgresql://"):
        return "postgresql+asyncpg://" + dsn[len("postgresql://") :]
    return dsn


async def wire_ticket_services(
    app: FastAPI,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    *,
    engine: AsyncEngine | None = None,
) -> None:
    """Build the ticket components over ``session_factory`` and attach them to ``app.state``."""

    ticket_repository = TicketRepository(session_factory, engine=engine)
    if engine is not None:
        await ticket_repository.ensure_schema()
    message_repository = TicketMessageRepository(session_factory)
    users = UserRepository(session_factory)
    drivers = DriverRepository(session_factory)
    resolver = ActorResolver(users)
    policy = AccessPolicy()

    app.state.ticket_service = TicketService(
        ticket_repository,
        message_repository,
        resolver=resolver,
        notifier=NotificationDispatcher(NotificationRepository(session_factory)),
        linked_entities=LinkedEntityResolver(
            quotes=QuoteRepository(session_factory),
            reservations=ReservationRepository(session_factory),
        ),
        policy=policy,
    )
    app.state.message_thread = MessageThread(
        ticket_repository,
        message_repository,
        resolver=resolver,
        policy=policy,
        default_page_size=settings.message_page_size,
        max_page_size=settings.max_page_size,
    )
    app.state.admin_query_engine = AdminQueryEngine(
        ticket_repository,
        users=users,
        drivers=drivers,
        resolver=resolver,
        names=ActorNameResolver(users=users, drivers=drivers),
        policy=policy,
        default_page_size=settings.admin_page_size,
        search_limit=settings.admin_search_limit,
        max_page_size=settings.max_page_size,
    )


def _clear_ticket_services(app: FastAPI) -> None:
    app.state.ticket_service = None
    app.state.message_thread = None
    app.state.admin_query_engine = None


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider
    db_engine = None
    app.state.db_engine = None
    app.state.db_session_factory = None
    _clear_ticket_services(app)
    try:
        db_engine = create_async_engine(_to_asyncpg_dsn(settings.postgres_dsn), future=True)
        session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
        await wire_ticket_services(app, session_factory, settings, engine=db_engine)
        app.state.db_engine = db_engine
        app.state.db_session_factory = session_factory
    except Exception:
        logger.exception("Ticket services could not be initialised; ticket routes will answer 503")
        _clear_ticket_services(app)
        if db_engine is not None:
            await db_engine.dispose()
            db_engine = None
    try:
        yield
    finally:
        if db_engine is not None:
            await db_engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(BearerIdentityMiddleware, tokens=settings.api_tokens)
    app.include_router(health.router)
    app.include_router(tickets.router)
    return app


app = create_app()
