"""Tests for ChatCompletionService."""
from types import SimpleNamespace
from unittest import mock

from django.test import TestCase, override_settings

from llm_service.errors import LLMConfigurationError, LLMProviderError
from llm_service.services import ChatCompletionService
from llm_service.tests.utils import fake_response

MESSAGES = [{"role": "user", "content": "Hi"}]


@override_settings(LLM_API_KEY="sk-test")
class ChatCompletionServiceTestCase(TestCase):

    @mock.patch("llm_service.services.completion")
    def test_complete_returns_message_text(self, mock_completion):
        mock_completion.return_value = fake_response(content="Hello there")
        result = ChatCompletionService().complete(messages=MESSAGES, model="a/model")
        self.assertEqual(result.text, "Hello there")
        self.assertEqual(result.model, "a/model")
        kwargs = mock_completion.call_args[1]
        self.assertEqual(kwargs["model"], "a/model")
        self.assertEqual(kwargs["max_tokens"], 100000)
        self.assertEqual(kwargs["temperature"], 0.7)
        self.assertFalse(kwargs["stream"])
        self.assertIn("request_id", kwargs["metadata"])

    @override_settings(LLM_MAX_TOKENS=512, LLM_TEMPERATURE=0.1)
    @mock.patch("llm_service.services.completion")
    def test_complete_uses_configured_generation_parameters(self, mock_completion):
        mock_completion.return_value = fake_response()
        ChatCompletionService().complete(messages=MESSAGES, model="a/model")
        kwargs = mock_completion.call_args[1]
        self.assertEqual(kwargs["max_tokens"], 512)
        self.assertEqual(kwargs["temperature"], 0.1)

    @mock.patch("llm_service.services.completion")
    def test_response_without_choices_is_invalid(self, mock_completion):
        mock_completion.return_value = SimpleNamespace(choices=[])
        with self.assertRaises(LLMProviderError) as ctx:
            ChatCompletionService().complete(messages=MESSAGES, model="a/model")
        self.assertIn("Invalid response format", str(ctx.exception))

    @mock.patch("llm_service.services.completion")
    def test_choice_without_message_is_invalid(self, mock_completion):
        mock_completion.return_value = SimpleNamespace(choices=[SimpleNamespace(message=None)])
        with self.assertRaises(LLMProviderError):
            ChatCompletionService().complete(messages=MESSAGES, model="a/model")

    @override_settings(LLM_API_KEY="")
    @mock.patch("llm_service.services.completion")
    def test_missing_api_key_raises_configuration_error(self, mock_completion):
        with self.assertRaises(LLMConfigurationError):
            ChatCompletionService().complete(messages=MESSAGES, model="a/model")
        mock_completion.assert_not_called()
