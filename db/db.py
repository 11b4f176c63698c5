"""
Async DB helpers for the daily check-in service.
Uses SQLAlchemy 2.0 + asyncpg driver – no raw SQL strings in app code.

Every state change on a check-in is a single conditional UPDATE: the row must
still be in an allowed source status with the target timestamp unset. The
returned row count tells the caller whether it won the transition.
"""

from __future__ import annotations

import os
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Date, DateTime, ForeignKey, Index, String, Text, TypeDecorator,
    UniqueConstraint, func, select, update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.ext.asyncio import (
    create_async_engine, async_sessionmaker, AsyncSession
)

from app.types.checkin_contract import (
    CheckInStatus, CheckInView, ContactView, UserProfile, sources_for,
)

UTC = timezone.utc

# Transient store failures: callers log them and skip the unit of work.
STORE_ERRORS = (SQLAlchemyError, OSError)


# ──────────────────────────────────────────────────────────────────────
# 1. Declarative metadata
# ──────────────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    pass


class UTCDateTime(TypeDecorator):
    """Timestamp stored in UTC and always handed back timezone-aware."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires a timezone-aware datetime")
        value = value.astimezone(UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


# ──────────────────────────────────────────────────────────────────────
# 2. Lazy engine / session factory
# ──────────────────────────────────────────────────────────────────────
_engine = None
_session_maker: async_sessionmaker[AsyncSession] | None = None

def _build_url() -> str:
    url = os.getenv("DATABASE_URL") or os.getenv("DATABASE_PUBLIC_URL")
    if not url:
        raise RuntimeError("DATABASE_URL not set")
    if url.startswith(("postgres://", "postgresql://")):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1).replace(
            "postgresql://", "postgresql+asyncpg://", 1
        )
    return url

def get_engine():
    global _engine
    if _engine is None:
        url = _build_url()
        if url.startswith("postgresql+asyncpg://"):
            _engine = create_async_engine(url, pool_size=5, max_overflow=5)
        else:
            _engine = create_async_engine(url)
    return _engine

def get_session() -> AsyncSession:
    """Open a session; use as ``async with get_session() as s:``."""
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_maker()


# ──────────────────────────────────────────────────────────────────────
# 3. ORM models
# ──────────────────────────────────────────────────────────────────────

class Profile(Base):
    __tablename__ = "profiles"

    id:             Mapped[str] = mapped_column(String(36), primary_key=True)
    phone_number:   Mapped[str] = mapped_column(String(32))
    first_name:     Mapped[str]
    timezone:       Mapped[str | None] = mapped_column(String(64))
    check_in_time:  Mapped[str | None] = mapped_column(String(8))
    # Wall-clock time in the profile's own timezone, stored without an offset.
    checkin_pause_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    created_at:     Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class EmergencyContact(Base):
    __tablename__ = "emergency_contacts"

    id:           Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id:      Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"))
    first_name:   Mapped[str]
    phone_number: Mapped[str] = mapped_column(String(32))
    priority:     Mapped[int] = mapped_column(default=1)

    __table_args__ = (
        Index("ix_emergency_contacts_user_priority", "user_id", "priority"),
    )


class CheckIn(Base):
    __tablename__ = "check_ins"

    id:                  Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id:             Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"))
    phone_number:        Mapped[str] = mapped_column(String(32))
    status:              Mapped[str] = mapped_column(String(16), default=CheckInStatus.PENDING.value)
    check_in_date:       Mapped[date] = mapped_column(Date)
    scheduled_for:       Mapped[datetime] = mapped_column(UTCDateTime())
    initial_sms_sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime())
    reminder_sent_at:    Mapped[datetime | None] = mapped_column(UTCDateTime())
    escalated_at:        Mapped[datetime | None] = mapped_column(UTCDateTime())
    completed_at:        Mapped[datetime | None] = mapped_column(UTCDateTime())

    __table_args__ = (
        UniqueConstraint("user_id", "check_in_date", name="uq_check_ins_user_day"),
        Index("ix_check_ins_phone_scheduled", "phone_number", "scheduled_for"),
        Index("ix_check_ins_status", "status"),
    )


class Response(Base):
    __tablename__ = "responses"

    id:           Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    phone_number: Mapped[str] = mapped_column(String(32))
    response:     Mapped[str] = mapped_column(Text)
    received_at:  Mapped[datetime] = mapped_column(UTCDateTime())


# ──────────────────────────────────────────────────────────────────────
# 4. DDL helper (run once at startup or from Alembic)
# ──────────────────────────────────────────────────────────────────────
async def create_all():
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ──────────────────────────────────────────────────────────────────────
# 5. CRUD helpers
# ──────────────────────────────────────────────────────────────────────

# 5.1 Profiles & contacts ---------------------------------------------
async def fetch_profiles() -> list[UserProfile]:
    async with get_session() as s:
        res = await s.execute(select(Profile).order_by(Profile.created_at, Profile.id))
        return [_profile_view(p) for p in res.scalars()]


async def get_profile(user_id: str) -> UserProfile | None:
    async with get_session() as s:
        p = await s.get(Profile, user_id)
        return _profile_view(p) if p else None


async def fetch_primary_contact(user_id: str) -> ContactView | None:
    """Emergency contact with the lowest priority value for ``user_id``."""
    async with get_session() as s:
        stmt = (
            select(EmergencyContact)
            .where(EmergencyContact.user_id == user_id)
            .order_by(EmergencyContact.priority.asc(), EmergencyContact.id)
            .limit(1)
        )
        res = await s.execute(stmt)
        contact = res.scalar_one_or_none()
        return ContactView.model_validate(contact) if contact else None


def _profile_view(p: Profile) -> UserProfile:
    return UserProfile(
        id=p.id,
        phone_number=p.phone_number,
        first_name=p.first_name,
        timezone=p.timezone,
        check_in_time=p.check_in_time,
        pause_end_date=p.checkin_pause_end_date,
    )


# 5.2 Check-ins ---------------------------------------------------------
async def insert_check_in(
    profile: UserProfile, now: datetime, check_in_date: date
) -> CheckInView | None:
    """Create today's pending check-in; ``None`` if one already exists."""
    row = CheckIn(
        id=str(uuid4()),
        user_id=profile.id,
        phone_number=profile.phone_number,
        status=CheckInStatus.PENDING.value,
        check_in_date=check_in_date,
        scheduled_for=now,
        initial_sms_sent_at=now,
    )
    async with get_session() as s:
        s.add(row)
        try:
            await s.commit()
        except IntegrityError:
            await s.rollback()
            return None
    return CheckInView.model_validate(row)


async def get_check_in(check_in_id: str) -> CheckInView | None:
    async with get_session() as s:
        row = await s.get(CheckIn, check_in_id)
        return CheckInView.model_validate(row) if row else None


async def _conditional_update(check_in_id: str, *criteria, **values) -> bool:
    async with get_session() as s:
        res = await s.execute(
            update(CheckIn)
            .where(CheckIn.id == check_in_id, *criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await s.commit()
        return res.rowcount == 1


async def claim_reminder(check_in_id: str, now: datetime) -> bool:
    """pending → reminded, setting ``reminder_sent_at`` exactly once."""
    return await _conditional_update(
        check_in_id,
        CheckIn.status.in_(sources_for(CheckInStatus.REMINDED)),
        CheckIn.reminder_sent_at.is_(None),
        CheckIn.completed_at.is_(None),
        status=CheckInStatus.REMINDED.value,
        reminder_sent_at=now,
    )


async def claim_escalation(check_in_id: str, now: datetime) -> bool:
    """pending|reminded → escalated; timestamp and status written together."""
    return await _conditional_update(
        check_in_id,
        CheckIn.status.in_(sources_for(CheckInStatus.ESCALATED)),
        CheckIn.escalated_at.is_(None),
        CheckIn.completed_at.is_(None),
        status=CheckInStatus.ESCALATED.value,
        escalated_at=now,
    )


async def complete_latest_check_in(phone_number: str, now: datetime) -> CheckInView | None:
    """Complete the most recently scheduled non-completed check-in for a number."""
    async with get_session() as s:
        stmt = (
            select(CheckIn)
            .where(
                CheckIn.phone_number == phone_number,
                CheckIn.status != CheckInStatus.COMPLETED.value,
            )
            .order_by(CheckIn.scheduled_for.desc())
            .limit(1)
        )
        res = await s.execute(stmt)
        target = res.scalar_one_or_none()
        if target is None:
            return None
        target_id = target.id

    won = await _conditional_update(
        target_id,
        CheckIn.status.in_(sources_for(CheckInStatus.COMPLETED)),
        CheckIn.completed_at.is_(None),
        status=CheckInStatus.COMPLETED.value,
        completed_at=now,
    )
    return await get_check_in(target_id) if won else None


async def fetch_open_check_ins(since: datetime) -> list[CheckInView]:
    """Pending or reminded check-ins scheduled at or after ``since``."""
    async with get_session() as s:
        stmt = (
            select(CheckIn)
            .where(
                CheckIn.status.in_(
                    (CheckInStatus.PENDING.value, CheckInStatus.REMINDED.value)
                ),
                CheckIn.scheduled_for >= since,
            )
            .order_by(CheckIn.scheduled_for)
        )
        res = await s.execute(stmt)
        return [CheckInView.model_validate(r) for r in res.scalars()]


# 5.3 Responses ---------------------------------------------------------
async def insert_response(phone_number: str, text: str, received_at: Optional[datetime] = None):
    row = Response(
        phone_number=phone_number,
        response=text,
        received_at=received_at or datetime.now(UTC),
    )
    async with get_session() as s:
        s.add(row)
        await s.commit()


async def dispose_engine():
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None
