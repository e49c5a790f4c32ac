"""
ChatService against a real SQLite database.
"""

import uuid

import pytest
import pytest_asyncio

from chatapp.kernel.identity.record import IdentityRecord
from chatapp.kernel.stores.sql import SqlUserStore
from chatapp.services.chat_service import ChatService


@pytest_asyncio.fixture
async def users(db_session):
    store = SqlUserStore(db_session)
    created = []
    for index, name in enumerate(["alice", "bob", "carol"]):
        created.append(
            await store.insert(
                IdentityRecord(
                    username=name,
                    email=f"{name}@x.com",
                    phone_number=f"555000000{index}",
                    password_hash="$2b$04$hash",
                )
            )
        )
    return created


@pytest.fixture
def chats(db_session) -> ChatService:
    return ChatService(db_session)


class TestChats:

    async def test_create_includes_admin(self, chats, users):
        alice, bob, _ = users
        chat = await chats.create_chat("general", admin_id=alice.id, participant_ids=[bob.id])

        assert chat.name == "general"
        assert chat.admin_id == alice.id
        assert set(chat.participant_ids) == {alice.id, bob.id}
        assert chat.created_at is not None

    async def test_create_rejects_empty_name(self, chats, users):
        with pytest.raises(ValueError):
            await chats.create_chat("   ", admin_id=users[0].id, participant_ids=[])

    async def test_create_rejects_unknown_participant(self, chats, users):
        with pytest.raises(ValueError, match="Unknown participant"):
            await chats.create_chat("general", admin_id=users[0].id, participant_ids=[uuid.uuid4()])

    async def test_membership(self, chats, users):
        alice, bob, carol = users
        chat = await chats.create_chat("pair", admin_id=alice.id, participant_ids=[bob.id])

        assert await chats.is_participant(chat.id, bob.id) is True
        assert await chats.is_participant(chat.id, carol.id) is False
        assert [c.id for c in await chats.list_chats_for_user(bob.id)] == [chat.id]
        assert await chats.list_chats_for_user(carol.id) == []

    async def test_latest_activity_first(self, chats, users):
        alice, bob, _ = users
        older = await chats.create_chat("older", admin_id=alice.id, participant_ids=[bob.id])
        newer = await chats.create_chat("newer", admin_id=alice.id, participant_ids=[bob.id])

        await chats.post_message(older.id, alice.id, content="bump")

        listed = await chats.list_chats_for_user(alice.id)
        assert [c.id for c in listed] == [older.id, newer.id]


class TestMessages:

    @pytest_asyncio.fixture
    async def chat(self, chats, users):
        alice, bob, _ = users
        return await chats.create_chat("pair", admin_id=alice.id, participant_ids=[bob.id])

    async def test_post_updates_last_message(self, chats, chat, users):
        message = await chats.post_message(chat.id, users[0].id, content="  hello  ")

        assert message.content == "hello"
        assert (await chats.get_chat(chat.id)).last_message_id == message.id

    async def test_attachments_only(self, chats, chat, users):
        message = await chats.post_message(chat.id, users[0].id, attachments=["https://cdn/a.png"])

        assert message.content is None
        assert message.attachments == [{"url": "https://cdn/a.png"}]

    async def test_empty_message_rejected(self, chats, chat, users):
        with pytest.raises(ValueError):
            await chats.post_message(chat.id, users[0].id, content="   ")

    async def test_missing_chat(self, chats, users):
        assert await chats.post_message(uuid.uuid4(), users[0].id, content="hi") is None

    async def test_list_newest_first_with_paging(self, chats, chat, users):
        alice = users[0]
        first = await chats.post_message(chat.id, alice.id, content="one")
        second = await chats.post_message(chat.id, alice.id, content="two")
        third = await chats.post_message(chat.id, alice.id, content="three")

        messages = await chats.list_messages(chat.id)
        assert [m.id for m in messages] == [third.id, second.id, first.id]

        assert [m.id for m in await chats.list_messages(chat.id, limit=2)] == [third.id, second.id]
        older = await chats.list_messages(chat.id, before=second.created_at)
        assert [m.id for m in older] == [first.id]

    async def test_delete_own_message(self, chats, chat, users):
        alice = users[0]
        first = await chats.post_message(chat.id, alice.id, content="one")
        second = await chats.post_message(chat.id, alice.id, content="two")

        assert await chats.delete_message(second.id, alice.id) is True
        assert await chats.get_message(second.id) is None
        assert (await chats.get_chat(chat.id)).last_message_id == first.id

    async def test_delete_last_remaining_message(self, chats, chat, users):
        only = await chats.post_message(chat.id, users[0].id, content="one")

        assert await chats.delete_message(only.id, users[0].id) is True
        assert (await chats.get_chat(chat.id)).last_message_id is None

    async def test_cannot_delete_others_message(self, chats, chat, users):
        alice, bob, _ = users
        message = await chats.post_message(chat.id, alice.id, content="mine")

        assert await chats.delete_message(message.id, bob.id) is False
        assert await chats.get_message(message.id) is not None
