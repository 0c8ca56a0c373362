import uuid
from datetime import timedelta
from types import SimpleNamespace
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone

from llm_chat.models import Chat, ChatMessage, Vote
from llm_chat.schemas import UIMessage
from llm_chat.services import (
    ChatAccessDenied,
    ChatNotFound,
    ChatService,
    NoUserMessage,
    build_api_messages,
    generate_title_from_user_message,
    get_most_recent_user_message,
    get_user_chat_model,
)
from llm_service.errors import LLMProviderError
from llm_service.models import LLMCallLog

User = get_user_model()

AUTO_TARGET = "meta-llama/Meta-Llama-3.1-405B-Instruct"


def ui(role, *parts, id=None):
    return UIMessage(id=id or uuid.uuid4(), role=role, parts=list(parts))


class TitleTest(TestCase):
    def test_title_from_first_string_part(self):
        self.assertEqual(generate_title_from_user_message(ui("user", "Plan a trip", "to Oslo")), "Plan a trip")

    def test_title_from_text_object(self):
        msg = UIMessage.model_validate({"role": "user", "parts": [{"type": "text", "text": "Hi there"}]})
        self.assertEqual(generate_title_from_user_message(msg), "Hi there")

    def test_title_is_truncated(self):
        self.assertEqual(len(generate_title_from_user_message(ui("user", "x" * 200))), 80)

    @override_settings(CHAT_TITLE_MAX_LENGTH=5)
    def test_title_length_is_configurable(self):
        self.assertEqual(generate_title_from_user_message(ui("user", "abcdefgh")), "abcde")

    def test_fallback_title(self):
        self.assertEqual(generate_title_from_user_message(ui("user")), "New chat")
        self.assertEqual(generate_title_from_user_message(ui("user", "   ")), "New chat")
        self.assertEqual(generate_title_from_user_message(None), "New chat")


class MessageHelpersTest(TestCase):
    def test_most_recent_user_message(self):
        first, last = ui("user", "a"), ui("user", "b")
        self.assertIs(get_most_recent_user_message([first, ui("assistant", "r"), last, ui("assistant", "s")]), last)
        self.assertIsNone(get_most_recent_user_message([ui("assistant", "r")]))
        self.assertIsNone(get_most_recent_user_message([]))

    def test_build_api_messages(self):
        messages = [
            ui("system", "ignored"),
            ui("user", "Hello", "there"),
            ui("assistant", "Hi"),
            ui("tool", "dropped"),
            ui("user", "Bye"),
        ]
        self.assertEqual(
            build_api_messages(messages, system_prompt="Be kind"),
            [
                {"role": "system", "content": "Be kind"},
                {"role": "user", "content": "Hello there"},
                {"role": "assistant", "content": "Hi"},
                {"role": "user", "content": "Bye"},
            ],
        )

    def test_default_system_prompt(self):
        api_messages = build_api_messages([ui("user", "Hi")])
        self.assertEqual(
            api_messages[0],
            {"role": "system", "content": "You are a helpful AI assistant. You were created by UVEVE.ID"},
        )

    @override_settings(CHAT_HISTORY_TOKEN_LIMIT=10)
    @mock.patch("llm_chat.services.count_tokens", side_effect=lambda text, model_name=None: len(text))
    def test_history_trimmed_to_token_limit(self, _mock_count):
        messages = [ui("user", "aaaaaa"), ui("assistant", "bbbbbb"), ui("user", "cccc")]
        api_messages = build_api_messages(messages, system_prompt="S")
        self.assertEqual([m["content"] for m in api_messages], ["S", "bbbbbb", "cccc"])

    @override_settings(CHAT_HISTORY_TOKEN_LIMIT=1)
    @mock.patch("llm_chat.services.count_tokens", side_effect=lambda text, model_name=None: len(text))
    def test_latest_message_always_kept(self, _mock_count):
        api_messages = build_api_messages([ui("user", "old"), ui("user", "too long")], system_prompt="S")
        self.assertEqual([m["content"] for m in api_messages], ["S", "too long"])


class UserChatModelTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="user@example.com", password="testpass")

    def test_default_when_unset(self):
        self.assertEqual(get_user_chat_model(self.user), "auto")

    def test_stored_catalog_model(self):
        self.user.settings.chat_model = AUTO_TARGET
        self.user.settings.save()
        self.assertEqual(get_user_chat_model(self.user), AUTO_TARGET)

    def test_unknown_stored_model_falls_back(self):
        self.user.settings.chat_model = "retired/model"
        self.user.settings.save()
        self.assertEqual(get_user_chat_model(self.user), "auto")


class SendMessageTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="user@example.com", password="testpass")
        patcher = mock.patch("llm_chat.services.ChatCompletionService")
        self.MockCompletion = patcher.start()
        self.addCleanup(patcher.stop)
        self.complete = self.MockCompletion.return_value.complete
        self.call_log = LLMCallLog.objects.create(model=AUTO_TARGET)
        self.complete.return_value = SimpleNamespace(text="Hello back", model=AUTO_TARGET, call_log=self.call_log)

    def test_new_chat_creates_chat_and_two_messages(self):
        chat_id = uuid.uuid4()
        user_msg = ui("user", "Hello model")
        data = ChatService().send_message(chat_id=chat_id, user=self.user, messages=[user_msg])

        chat = Chat.objects.get(id=chat_id)
        self.assertEqual(chat.user, self.user)
        self.assertEqual(chat.title, "Hello model")
        self.assertIsNotNone(chat.last_message_at)

        rows = list(chat.messages.all())
        self.assertEqual([m.role for m in rows], ["user", "assistant"])
        self.assertEqual(rows[0].id, user_msg.id)
        self.assertEqual(rows[0].content, "Hello model")
        assistant = rows[1]
        self.assertEqual(assistant.content, "Hello back")
        self.assertEqual(assistant.status, ChatMessage.Status.FINAL)
        self.assertEqual(assistant.model, "auto")
        self.assertEqual(assistant.llm_call_log, self.call_log)

        self.assertEqual(data["id"], str(assistant.id))
        self.assertEqual(len(data["messages"]), 1)
        self.assertEqual(data["messages"][0]["role"], "assistant")
        self.assertEqual(data["messages"][0]["parts"], [{"text": "Hello back"}])
        self.assertEqual(data["messages"][0]["id"], str(assistant.id))
        self.assertIn("createdAt", data["messages"][0])

    def test_forwards_resolved_model_and_history(self):
        messages = [ui("user", "One"), ui("assistant", "Two"), ui("user", "Three")]
        ChatService().send_message(
            chat_id=uuid.uuid4(), user=self.user, messages=messages, selected_model="auto"
        )
        kwargs = self.complete.call_args[1]
        self.assertEqual(kwargs["model"], AUTO_TARGET)
        self.assertEqual(kwargs["user"], self.user)
        self.assertEqual(
            [m["content"] for m in kwargs["messages"]][1:], ["One", "Two", "Three"]
        )
        self.assertEqual(kwargs["messages"][0]["role"], "system")

    def test_specific_model_is_passed_through(self):
        model_id = "meta-llama/Meta-Llama-3.1-8B-Instruct"
        ChatService().send_message(
            chat_id=uuid.uuid4(), user=self.user, messages=[ui("user", "Hi")], selected_model=model_id
        )
        self.assertEqual(self.complete.call_args[1]["model"], model_id)
        self.assertEqual(ChatMessage.objects.get(role="assistant").model, model_id)

    def test_unknown_model_uses_auto(self):
        ChatService().send_message(
            chat_id=uuid.uuid4(), user=self.user, messages=[ui("user", "Hi")], selected_model="bogus/model"
        )
        self.assertEqual(self.complete.call_args[1]["model"], AUTO_TARGET)
        self.assertEqual(ChatMessage.objects.get(role="assistant").model, "auto")

    def test_existing_chat_keeps_title_and_dedupes_user_message(self):
        chat_id = uuid.uuid4()
        first = ui("user", "First question")
        service = ChatService()
        service.send_message(chat_id=chat_id, user=self.user, messages=[first])
        service.send_message(chat_id=chat_id, user=self.user, messages=[first])

        chat = Chat.objects.get(id=chat_id)
        self.assertEqual(chat.title, "First question")
        roles = list(chat.messages.values_list("role", flat=True))
        self.assertEqual(roles, ["user", "assistant", "assistant"])

    def test_no_user_message(self):
        with self.assertRaises(NoUserMessage):
            ChatService().send_message(chat_id=uuid.uuid4(), user=self.user, messages=[ui("assistant", "x")])
        self.assertFalse(Chat.objects.exists())
        self.complete.assert_not_called()

    def test_foreign_chat_denied(self):
        other = User.objects.create_user(email="other@example.com", password="pw")
        chat = Chat.objects.create(user=other, title="Theirs")
        with self.assertRaises(ChatAccessDenied):
            ChatService().send_message(chat_id=chat.id, user=self.user, messages=[ui("user", "Hi")])
        self.assertFalse(ChatMessage.objects.exists())
        self.complete.assert_not_called()

    def test_api_error_persists_apology(self):
        self.complete.side_effect = LLMProviderError("API request failed with status 502", http_status=502)
        data = ChatService().send_message(chat_id=uuid.uuid4(), user=self.user, messages=[ui("user", "Hi")])

        assistant = ChatMessage.objects.get(role="assistant")
        self.assertEqual(
            assistant.content,
            "Sorry, something went wrong while contacting the API. Please try again later. "
            "(Error: API request failed with status 502)",
        )
        self.assertEqual(assistant.status, ChatMessage.Status.ERROR)
        self.assertEqual(assistant.error, "API request failed with status 502")
        self.assertEqual(data["messages"][0]["parts"][0]["text"], assistant.content)
        self.assertEqual(ChatMessage.objects.count(), 2)

    def test_unexpected_error_propagates(self):
        self.complete.side_effect = RuntimeError("boom")
        with self.assertRaises(RuntimeError):
            ChatService().send_message(chat_id=uuid.uuid4(), user=self.user, messages=[ui("user", "Hi")])


class ChatManagementTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="user@example.com", password="testpass")
        self.other = User.objects.create_user(email="other@example.com", password="testpass")
        self.chat = Chat.objects.create(user=self.user, title="Mine")
        self.service = ChatService()

    def _message(self, role, content, offset):
        msg = ChatMessage.objects.create(chat=self.chat, role=role, content=content)
        base = Chat.objects.get(id=self.chat.id).created_at
        ChatMessage.objects.filter(id=msg.id).update(created_at=base + timedelta(seconds=offset))
        msg.refresh_from_db()
        return msg

    def test_delete_chat(self):
        self.service.delete_chat(chat_id=self.chat.id, user=self.user)
        self.assertFalse(Chat.objects.filter(id=self.chat.id).exists())

    def test_delete_missing_chat(self):
        with self.assertRaises(ChatNotFound):
            self.service.delete_chat(chat_id=uuid.uuid4(), user=self.user)

    def test_delete_foreign_chat(self):
        with self.assertRaises(ChatAccessDenied):
            self.service.delete_chat(chat_id=self.chat.id, user=self.other)
        self.assertTrue(Chat.objects.filter(id=self.chat.id).exists())

    def test_delete_trailing_messages(self):
        m1 = self._message("user", "q1", 1)
        self._message("assistant", "a1", 2)
        m3 = self._message("user", "q2", 3)
        self._message("assistant", "a2", 4)

        deleted = self.service.delete_trailing_messages(message_id=m3.id, user=self.user)

        self.assertEqual(deleted, 2)
        self.assertEqual(
            list(self.chat.messages.values_list("content", flat=True)), ["q1", "a1"]
        )
        self.assertTrue(ChatMessage.objects.filter(id=m1.id).exists())

    def test_delete_trailing_missing_message(self):
        with self.assertLogs("llm_chat.services", level="ERROR"):
            self.assertEqual(self.service.delete_trailing_messages(message_id=uuid.uuid4(), user=self.user), 0)

    def test_delete_trailing_other_users_message(self):
        msg = self._message("user", "q1", 1)
        with self.assertLogs("llm_chat.services", level="ERROR"):
            self.assertEqual(self.service.delete_trailing_messages(message_id=msg.id, user=self.other), 0)
        self.assertTrue(ChatMessage.objects.filter(id=msg.id).exists())

    def test_update_visibility(self):
        chat = self.service.update_visibility(chat_id=self.chat.id, user=self.user, visibility="public")
        self.assertEqual(chat.visibility, Chat.Visibility.PUBLIC)
        with self.assertRaises(ChatAccessDenied):
            self.service.update_visibility(chat_id=self.chat.id, user=self.other, visibility="private")

    def test_vote_and_revote(self):
        msg = self._message("assistant", "answer", 1)
        self.service.vote(chat_id=self.chat.id, message_id=msg.id, user=self.user, up=True)
        self.service.vote(chat_id=self.chat.id, message_id=msg.id, user=self.user, up=False)
        self.assertEqual(Vote.objects.count(), 1)
        self.assertEqual(
            self.service.votes_for(chat_id=self.chat.id, user=self.user),
            [{"chatId": str(self.chat.id), "messageId": str(msg.id), "isUpvoted": False}],
        )

    def test_vote_on_message_from_other_chat(self):
        other_chat = Chat.objects.create(user=self.user)
        msg = ChatMessage.objects.create(chat=other_chat, role="assistant", content="x")
        with self.assertRaises(ChatNotFound):
            self.service.vote(chat_id=self.chat.id, message_id=msg.id, user=self.user, up=True)

    def test_history_only_own_chats(self):
        Chat.objects.create(user=self.other, title="Theirs")
        self.assertEqual([c.title for c in self.service.history(user=self.user)], ["Mine"])

    def test_history_puts_chats_without_messages_last(self):
        Chat.objects.create(user=self.user, title="Answered", last_message_at=timezone.now())
        titles = [c.title for c in self.service.history(user=self.user)]
        self.assertEqual(titles, ["Answered", "Mine"])
