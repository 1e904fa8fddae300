"""SQLAlchemy repositories.

Most tests run against Postgres and are skipped without ATLAS_TEST_DB_URL.
"""

from datetime import date
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from dream_atlas.domain.dream.entities.dream import Dream
from dream_atlas.infrastructure.implementations.conversation.rds_conversation_repository import RDSConversationRepository
from dream_atlas.infrastructure.implementations.dream.rds_dream_repository import RDSDreamRepository
from dream_atlas.infrastructure.implementations.summary.rds_summary_repository import RDSSummaryRepository


async def _dream(repo, session, user_id, day, title, **kw):
    dream = Dream(slug=f"{title.lower()}-{uuid4().hex[:6]}", title=title, dream_date=day, **kw)
    return await repo.create_dream(user_id, dream, session)


@pytest.mark.asyncio
async def test_window_is_owner_scoped_and_ascending(pg_session):
    repo = RDSDreamRepository()
    owner = uuid4()
    await _dream(repo, pg_session, owner, date(2024, 1, 5), "Later")
    await _dream(repo, pg_session, owner, date(2024, 1, 2), "Earlier")
    await _dream(repo, pg_session, owner, date(2024, 1, 9), "Outside")
    await _dream(repo, pg_session, uuid4(), date(2024, 1, 3), "Stranger")

    dreams = await repo.list_dreams_in_window(owner, date(2024, 1, 1), date(2024, 1, 7), pg_session)

    assert [d.title for d in dreams] == ["Earlier", "Later"]


@pytest.mark.asyncio
async def test_replace_interpretation_keeps_one_row(pg_session):
    repo = RDSDreamRepository()
    dream = await _dream(repo, pg_session, uuid4(), date(2024, 1, 1), "Flying")

    await repo.replace_interpretation(dream.id, "<p>one</p>", pg_session)
    await repo.replace_interpretation(dream.id, "<p>two</p>", pg_session)

    current = await repo.get_interpretation(dream.id, pg_session)
    assert current.summary_text == "<p>two</p>"


@pytest.mark.asyncio
async def test_media_write_back_is_visible_on_loaded_instance(pg_session):
    repo = RDSDreamRepository()
    dream = await _dream(repo, pg_session, uuid4(), date(2024, 1, 1), "Clip", image_url="https://cdn.test/a.mp4")

    await repo.set_thumbnail_url(dream.id, "https://dream-images.test/t.jpg", pg_session)

    assert dream.thumbnail_url == "https://dream-images.test/t.jpg"


@pytest.mark.asyncio
async def test_latest_summary(pg_session):
    repo = RDSSummaryRepository()
    owner = uuid4()
    start, end = date(2024, 1, 1), date(2024, 1, 7)
    await repo.create_summary(owner, start, end, "old", pg_session)
    await repo.create_summary(owner, start, end, "new", pg_session)

    latest = await repo.latest_summary(owner, start, end, pg_session)

    assert latest.summary_text == "new"


@pytest.mark.asyncio
async def test_messages_keep_append_order(pg_session):
    repo = RDSConversationRepository()
    owner = uuid4()
    chat = await repo.create_session(owner, date(2024, 1, 1), date(2024, 1, 7), pg_session)

    await repo.append_messages(chat.id, [("user", "q1"), ("assistant", "a1")], pg_session)
    await repo.append_messages(chat.id, [("user", "q2"), ("assistant", "a2")], pg_session)

    messages = await repo.list_messages(chat.id, pg_session)
    assert [m.content for m in messages] == ["q1", "a1", "q2", "a2"]
    assert await repo.get_session(uuid4(), chat.id, pg_session) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("write", ["set_image_url", "set_thumbnail_url"])
async def test_failed_media_write_back_rolls_back(write):
    session = AsyncMock()
    session.commit.side_effect = SQLAlchemyError("could not serialize access")

    with pytest.raises(SQLAlchemyError):
        await getattr(RDSDreamRepository(), write)(uuid4(), "https://dream-images.test/u/a.jpg", session)

    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_profile_upsert_creates_then_updates(pg_session):
    from dream_atlas.infrastructure.implementations.user.profile_repository import SqlProfileRepository

    repo = SqlProfileRepository()
    uid = uuid4()
    created = await repo.upsert(uid, {"username": "luna", "display_name": "Luna"}, pg_session)
    updated = await repo.upsert(uid, {"bio": "night owl", "is_public_profile": True}, pg_session)

    assert created.id == updated.id == uid
    assert updated.username == "luna"
    assert updated.bio == "night owl"
    assert (await repo.get_by_username("luna", pg_session)).is_public_profile is True
