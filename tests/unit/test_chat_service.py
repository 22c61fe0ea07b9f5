"""Unit tests for the referee chat service."""

import asyncio
import logging
import uuid

import pytest
import pytest_asyncio

from app.core.config import settings
from app.core.encryption import DecryptionError, hash_token
from app.domains.chat.access import AccessCredential
from app.domains.chat.repository import ChatRepository
from app.exceptions.base import ValidationError
from app.exceptions.chat import (
    ApplicationNotFoundError,
    ApplicationPermissionError,
    ChatAccessDeniedError,
    RefereeNotFoundError,
)
from models.application import ApplicationStatus
from models.chat_message import SenderType
from tests.factories import ApplicationFactory, RefereeFactory, persist


def _token_from(url: str) -> str:
    return url.split("?token=", 1)[1]


@pytest_asyncio.fixture
async def created(chat_service, application, referee, recruiter):
    return await chat_service.create_chat(
        application.id, referee.id, AccessCredential.recruiter(recruiter.id)
    )


@pytest.fixture
def recruiter_credential(recruiter):
    return AccessCredential.recruiter(recruiter.id)


@pytest.fixture
def referee_credential(created):
    return AccessCredential.referee(_token_from(created.access_url))


@pytest.mark.asyncio
class TestCreateChat:
    """Test cases for opening a chat."""

    async def test_create_chat(self, created, application, referee, recruiter, mock_notifier, job):
        chat = created.chat

        assert created.created is True
        assert chat.application_id == application.id
        assert chat.referee_id == referee.id
        assert chat.recruiter_id == recruiter.id
        assert created.access_url == (
            f"{settings.app_base_url}/chat/{chat.id}?token={_token_from(created.access_url)}"
        )
        assert chat.token_hash == hash_token(_token_from(created.access_url))

        mock_notifier.send_invitation.assert_awaited_once_with(
            referee.email, referee.phone, referee.name, created.access_url, job.title, job.company
        )

    async def test_under_review_moves_to_referee_contacted(self, created, application, test_db):
        await test_db.refresh(application)

        assert application.status == ApplicationStatus.REFEREE_CONTACTED

    async def test_other_statuses_are_left_alone(
        self, chat_service, test_db, job, employee, recruiter_credential
    ):
        application = await persist(
            test_db,
            ApplicationFactory.build(
                job_id=job.id, employee_id=employee.id, status=ApplicationStatus.VERIFIED
            ),
        )
        referee = await persist(test_db, RefereeFactory.build(application_id=application.id))

        await chat_service.create_chat(application.id, referee.id, recruiter_credential)
        await test_db.refresh(application)

        assert application.status == ApplicationStatus.VERIFIED

    async def test_create_twice_returns_same_chat_and_one_invitation(
        self, chat_service, created, application, referee, recruiter_credential, mock_notifier
    ):
        again = await chat_service.create_chat(application.id, referee.id, recruiter_credential)

        assert again.created is False
        assert again.chat.id == created.chat.id
        assert again.access_url == created.access_url
        assert mock_notifier.send_invitation.await_count == 1

    async def test_lost_creation_race_returns_existing_chat(
        self, chat_service, test_db, application, referee, recruiter, recruiter_credential, mock_notifier
    ):
        winner = await ChatRepository(test_db).create_chat(
            application_id=application.id,
            recruiter_id=recruiter.id,
            referee_id=referee.id,
            token_hash=hash_token("winner"),
            raw_token="winner",
        )
        await test_db.commit()

        # simulate a caller whose existence check ran before the winner's insert
        original = chat_service.repository.find_chat_by_application_and_referee
        calls = []

        async def stale_then_fresh(application_id, referee_id):
            calls.append(1)
            if len(calls) == 1:
                return None
            return await original(application_id, referee_id)

        chat_service.repository.find_chat_by_application_and_referee = stale_then_fresh

        result = await chat_service.create_chat(application.id, referee.id, recruiter_credential)

        assert result.created is False
        assert result.chat.id == winner.id
        assert _token_from(result.access_url) == "winner"
        mock_notifier.send_invitation.assert_not_awaited()

    async def test_referee_credential_cannot_create(self, chat_service, application, referee):
        with pytest.raises(ApplicationPermissionError):
            await chat_service.create_chat(
                application.id, referee.id, AccessCredential.referee("a" * 64)
            )

    async def test_not_owner(self, chat_service, application, referee, other_recruiter, mock_notifier):
        with pytest.raises(ApplicationPermissionError) as exc_info:
            await chat_service.create_chat(
                application.id, referee.id, AccessCredential.recruiter(other_recruiter.id)
            )

        assert exc_info.value.status_code == 403
        mock_notifier.send_invitation.assert_not_awaited()

    async def test_unknown_application(self, chat_service, referee, recruiter_credential):
        with pytest.raises(ApplicationNotFoundError):
            await chat_service.create_chat(uuid.uuid4(), referee.id, recruiter_credential)

    async def test_referee_of_other_application(
        self, chat_service, test_db, application, job, employee, recruiter_credential
    ):
        other_application = await persist(
            test_db, ApplicationFactory.build(job_id=job.id, employee_id=employee.id)
        )
        stranger = await persist(test_db, RefereeFactory.build(application_id=other_application.id))

        with pytest.raises(RefereeNotFoundError):
            await chat_service.create_chat(application.id, stranger.id, recruiter_credential)

    async def test_unknown_referee(self, chat_service, application, recruiter_credential):
        with pytest.raises(RefereeNotFoundError):
            await chat_service.create_chat(application.id, uuid.uuid4(), recruiter_credential)


@pytest.mark.asyncio
class TestMessages:
    """Test cases for sending and reading messages."""

    async def test_new_chat_has_no_messages(self, chat_service, created, referee_credential):
        assert await chat_service.list_messages(created.chat.id, referee_credential) == []

    async def test_sender_comes_from_credential(
        self, chat_service, created, recruiter_credential, referee_credential
    ):
        from_referee = await chat_service.send_message(
            created.chat.id, referee_credential, "Available Tuesday 3pm"
        )
        from_recruiter = await chat_service.send_message(
            created.chat.id, recruiter_credential, "Great, confirmed"
        )

        assert from_referee.sender_type == SenderType.REFEREE
        assert from_referee.content == "Available Tuesday 3pm"
        assert from_recruiter.sender_type == SenderType.RECRUITER

        messages = await chat_service.list_messages(created.chat.id, recruiter_credential)
        assert [(m.sender_type, m.content) for m in messages] == [
            (SenderType.REFEREE, "Available Tuesday 3pm"),
            (SenderType.RECRUITER, "Great, confirmed"),
        ]

    async def test_content_is_stored_encrypted(
        self, chat_service, created, recruiter_credential, test_db, encryptor
    ):
        await chat_service.send_message(created.chat.id, recruiter_credential, "private words")

        stored = await ChatRepository(test_db).list_messages(created.chat.id)
        assert "private words" not in stored[0].encrypted_content
        assert encryptor.decrypt(stored[0].encrypted_content) == "private words"

    async def test_recruiter_message_alerts_referee_with_token_link(
        self, chat_service, created, recruiter_credential, referee, mock_notifier
    ):
        await chat_service.send_message(created.chat.id, recruiter_credential, "Hello")

        mock_notifier.send_new_message_alert.assert_awaited_once_with(
            referee.email, referee.phone, referee.name, created.access_url
        )

    async def test_referee_message_alerts_recruiter_without_token(
        self, chat_service, created, referee_credential, recruiter, mock_notifier
    ):
        await chat_service.send_message(created.chat.id, referee_credential, "Hi")

        mock_notifier.send_new_message_alert.assert_awaited_once_with(
            recruiter.email,
            recruiter.phone,
            recruiter.full_name,
            f"{settings.app_base_url}/chat/{created.chat.id}",
        )

    @pytest.mark.parametrize("content", ["", "   \n\t"])
    async def test_empty_content_rejected(self, chat_service, created, recruiter_credential, content):
        with pytest.raises(ValidationError):
            await chat_service.send_message(created.chat.id, recruiter_credential, content)

    async def test_length_boundary(self, chat_service, created, recruiter_credential):
        limit = settings.max_message_length
        accepted = await chat_service.send_message(created.chat.id, recruiter_credential, "y" * limit)
        assert len(accepted.content) == limit

        with pytest.raises(ValidationError) as exc_info:
            await chat_service.send_message(created.chat.id, recruiter_credential, "y" * (limit + 1))
        assert exc_info.value.status_code == 422

    async def test_invalid_content_is_not_stored(
        self, chat_service, created, recruiter_credential, mock_notifier, test_db
    ):
        with pytest.raises(ValidationError):
            await chat_service.send_message(created.chat.id, recruiter_credential, " ")

        assert await ChatRepository(test_db).list_messages(created.chat.id) == []
        mock_notifier.send_new_message_alert.assert_not_awaited()

    async def test_send_to_inaccessible_chat(self, chat_service, created, other_recruiter):
        with pytest.raises(ChatAccessDeniedError):
            await chat_service.send_message(
                created.chat.id, AccessCredential.recruiter(other_recruiter.id), "Hi"
            )

    @pytest.mark.parametrize("content", ["", "x" * 6000])
    async def test_inaccessible_chat_denied_before_content_check(
        self, chat_service, created, other_recruiter, content
    ):
        with pytest.raises(ChatAccessDeniedError):
            await chat_service.send_message(
                created.chat.id, AccessCredential.recruiter(other_recruiter.id), content
            )

    async def test_length_counts_utf16_units(self, chat_service, created, recruiter_credential):
        limit = settings.max_message_length
        emoji = "\U0001F600"  # two UTF-16 code units

        accepted = await chat_service.send_message(
            created.chat.id, recruiter_credential, emoji * (limit // 2)
        )
        assert accepted.content == emoji * (limit // 2)

        with pytest.raises(ValidationError):
            await chat_service.send_message(
                created.chat.id, recruiter_credential, emoji * (limit // 2) + "y"
            )

    async def test_listing_does_not_block_event_loop(
        self, chat_service, created, recruiter_credential
    ):
        for i in range(10):
            await chat_service.send_message(created.chat.id, recruiter_credential, f"note {i}")

        loop = asyncio.get_running_loop()
        gaps = []
        stop = asyncio.Event()

        async def ticker():
            last = loop.time()
            while not stop.is_set():
                await asyncio.sleep(0.01)
                now = loop.time()
                gaps.append(now - last)
                last = now

        task = asyncio.create_task(ticker())
        await asyncio.sleep(0)
        started = loop.time()
        messages = await chat_service.list_messages(created.chat.id, recruiter_credential)
        elapsed = loop.time() - started
        stop.set()
        await task

        assert len(messages) == 10
        assert gaps
        assert max(gaps) < elapsed / 3

    async def test_corrupt_message_aborts_listing_by_default(
        self, chat_service, created, recruiter_credential, test_db, caplog
    ):
        await chat_service.send_message(created.chat.id, recruiter_credential, "fine")
        stored = (await ChatRepository(test_db).list_messages(created.chat.id))[0]
        stored.encrypted_content = "A" * 200
        await test_db.commit()

        with caplog.at_level(logging.ERROR, logger="app.domains.chat.service"):
            with pytest.raises(DecryptionError):
                await chat_service.list_messages(created.chat.id, recruiter_credential)

        assert "could not be decrypted" in caplog.text

    async def test_corrupt_message_isolated_when_enabled(
        self, chat_service, created, recruiter_credential, test_db, monkeypatch
    ):
        monkeypatch.setattr(settings, "isolate_decryption_failures", True)
        await chat_service.send_message(created.chat.id, recruiter_credential, "first")
        await chat_service.send_message(created.chat.id, recruiter_credential, "second")
        stored = (await ChatRepository(test_db).list_messages(created.chat.id))[0]
        stored.encrypted_content = "A" * 200
        await test_db.commit()

        messages = await chat_service.list_messages(created.chat.id, recruiter_credential)

        assert [m.content for m in messages] == [None, "second"]
        assert [m.decryption_failed for m in messages] == [True, False]


@pytest.mark.asyncio
class TestGetChat:
    async def test_detail_for_recruiter(
        self, chat_service, created, recruiter_credential, recruiter, referee, job
    ):
        await chat_service.send_message(created.chat.id, recruiter_credential, "Hello")

        detail = await chat_service.get_chat(created.chat.id, recruiter_credential)

        assert detail.chat.id == created.chat.id
        assert detail.is_referee is False
        assert detail.application.status == ApplicationStatus.REFEREE_CONTACTED
        assert detail.application.job_title == job.title
        assert detail.application.company == job.company
        assert detail.recruiter.first_name == recruiter.first_name
        assert detail.referee.name == referee.name
        assert [m.content for m in detail.messages] == ["Hello"]

    async def test_detail_for_referee(self, chat_service, created, referee_credential):
        detail = await chat_service.get_chat(created.chat.id, referee_credential)

        assert detail.is_referee is True
        assert "token" not in detail.chat.model_dump()
        assert "token_hash" not in detail.chat.model_dump()


@pytest.mark.asyncio
class TestResendInvitation:
    async def test_resend_reuses_token(
        self, chat_service, created, recruiter_credential, mock_notifier, referee, job
    ):
        result = await chat_service.resend_invitation(created.chat.id, recruiter_credential)

        assert result.created is False
        assert result.access_url == created.access_url
        assert mock_notifier.send_invitation.await_count == 2
        mock_notifier.send_invitation.assert_awaited_with(
            referee.email, referee.phone, referee.name, created.access_url, job.title, job.company
        )

    async def test_referee_cannot_resend(self, chat_service, created, referee_credential):
        with pytest.raises(ApplicationPermissionError):
            await chat_service.resend_invitation(created.chat.id, referee_credential)

    async def test_other_recruiter_cannot_resend(self, chat_service, created, other_recruiter):
        with pytest.raises(ChatAccessDeniedError):
            await chat_service.resend_invitation(
                created.chat.id, AccessCredential.recruiter(other_recruiter.id)
            )
