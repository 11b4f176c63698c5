import pytest
import pytest_asyncio

import db
from app.utils import sms as sms_util
from db.db import EmergencyContact, Profile


@pytest_asyncio.fixture
async def store(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'checkin.db'}")
    await db.dispose_engine()
    await db.create_all()
    yield db
    await db.dispose_engine()


@pytest.fixture
def sent(monkeypatch):
    messages: list[tuple[str, str]] = []

    def fake_send_sms(to, body):
        messages.append((to, body))
        return True

    monkeypatch.setattr(sms_util, "send_sms", fake_send_sms)
    return messages


@pytest.fixture
def scheduled():
    """Recording FollowUpScheduler."""
    calls = []

    def schedule(kind, check_in_id, fire_at):
        calls.append((kind, check_in_id, fire_at))

    schedule.calls = calls
    return schedule


@pytest.fixture
def add_profile(store):
    async def _add(id="u1", phone_number="+61400000001", first_name="Ada",
                   timezone="Australia/Sydney", check_in_time="09:00", pause_end=None):
        async with db.get_session() as s:
            s.add(Profile(
                id=id,
                phone_number=phone_number,
                first_name=first_name,
                timezone=timezone,
                check_in_time=check_in_time,
                checkin_pause_end_date=pause_end,
            ))
            await s.commit()
    return _add


@pytest.fixture
def add_contact(store):
    async def _add(user_id="u1", first_name="Grace", phone_number="+61400000999", priority=1):
        async with db.get_session() as s:
            s.add(EmergencyContact(
                user_id=user_id,
                first_name=first_name,
                phone_number=phone_number,
                priority=priority,
            ))
            await s.commit()
    return _add
