import logging
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.config import Settings
from app.core.db import build_engine, build_session_maker, init_db, probe_database
from app.models.appointment import Appointment, AppointmentCreate, AppointmentStatus

logger = logging.getLogger(__name__)


def _utc_naive_now() -> datetime:
    """Naive UTC for comparison with TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)


class AppointmentStore(Protocol):
    """Create/list/confirm/delete over appointment records."""

    backend: str

    async def create(self, data: AppointmentCreate) -> str: ...

    async def list_all(self) -> list[Appointment]: ...

    async def get(self, appointment_id: str) -> Appointment | None: ...

    async def confirm(
        self, appointment_id: str, appointment_date: date, appointment_time: str
    ) -> Appointment | None: ...

    async def delete(self, appointment_id: str) -> bool: ...

    async def close(self) -> None: ...


class SqlAppointmentStore:
    """Durable store backed by the `appointments` table."""

    backend = "database"

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_maker: async_sessionmaker[AsyncSession] = build_session_maker(engine)

    async def create(self, data: AppointmentCreate) -> str:
        appointment = Appointment.model_validate(data.model_dump())
        async with self._session_maker() as session:
            try:
                session.add(appointment)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        return appointment.id

    async def list_all(self) -> list[Appointment]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(Appointment).order_by(Appointment.created_at.desc())
            )
            return list(result.scalars().all())

    async def get(self, appointment_id: str) -> Appointment | None:
        async with self._session_maker() as session:
            return await session.get(Appointment, appointment_id)

    async def confirm(
        self, appointment_id: str, appointment_date: date, appointment_time: str
    ) -> Appointment | None:
        async with self._session_maker() as session:
            try:
                appointment = await session.get(Appointment, appointment_id)
                if appointment is None:
                    return None
                appointment.status = AppointmentStatus.CONFIRMED
                appointment.appointment_date = appointment_date
                appointment.appointment_time = appointment_time
                session.add(appointment)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            return appointment

    async def delete(self, appointment_id: str) -> bool:
        async with self._session_maker() as session:
            try:
                appointment = await session.get(Appointment, appointment_id)
                if appointment is None:
                    return False
                await session.delete(appointment)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            return True

    async def close(self) -> None:
        await self._engine.dispose()


class MemoryAppointmentStore:
    """Volatile store: an ordered list and a counter, lost on restart."""

    backend = "memory"

    def __init__(self, clock: Callable[[], datetime] = _utc_naive_now) -> None:
        self._clock = clock
        self._records: list[Appointment] = []
        self._counter = 1

    async def create(self, data: AppointmentCreate) -> str:
        appointment = Appointment(
            **data.model_dump(),
            id=str(self._counter),
            status=AppointmentStatus.PENDING,
            created_at=self._clock(),
        )
        self._counter += 1
        self._records.append(appointment)
        return appointment.id

    async def list_all(self) -> list[Appointment]:
        # Stable sort over the reversed list keeps newer inserts first on equal timestamps.
        return sorted(reversed(self._records), key=lambda a: a.created_at, reverse=True)

    async def get(self, appointment_id: str) -> Appointment | None:
        for appointment in self._records:
            if appointment.id == appointment_id:
                return appointment
        return None

    async def confirm(
        self, appointment_id: str, appointment_date: date, appointment_time: str
    ) -> Appointment | None:
        appointment = await self.get(appointment_id)
        if appointment is None:
            return None
        appointment.status = AppointmentStatus.CONFIRMED
        appointment.appointment_date = appointment_date
        appointment.appointment_time = appointment_time
        return appointment

    async def delete(self, appointment_id: str) -> bool:
        appointment = await self.get(appointment_id)
        if appointment is None:
            return False
        self._records.remove(appointment)
        return True

    async def close(self) -> None:
        self._records.clear()


async def select_store(settings: Settings) -> AppointmentStore:
    """Pick the durable store when the database answers in time, else fall back to memory."""
    if not settings.database_url:
        logger.info("DATABASE_URL not set, using in-memory storage")
        return MemoryAppointmentStore()
    engine = build_engine(settings.database_url)
    try:
        await probe_database(engine, settings.database_probe_timeout_seconds)
        await init_db(engine)
    except Exception as e:
        logger.warning("Database not available (%s: %s), using in-memory storage", type(e).__name__, e)
        await engine.dispose()
        return MemoryAppointmentStore()
    logger.info("Connected to database")
    return SqlAppointmentStore(engine)
