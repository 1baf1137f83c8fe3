"""Tests for backend implementations and the backend factory."""

import json
from unittest.mock import Mock, patch

import pytest
import requests

from srtai.errors import BackendError
from srtai.translate.backend import (
    DEFAULT_CHAT_URL,
    CallableBackend,
    ChatCompletionsBackend,
    ConverseBackend,
    EchoBackend,
)
from srtai.translate.factory import get_backend
from srtai.translate.prompt import build_request_payload


def make_response(body=None, status_error=None, json_error=False, text=""):
    response = Mock()
    response.text = text or json.dumps(body)
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


def chat_body(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def converse_body(text):
    content = [] if text is None else [{"text": text}]
    return {"output": {"message": {"role": "assistant", "content": content}}, "stopReason": "end_turn"}


class TestChatCompletionsBackend:
    def test_returns_message_content(self):
        backend = ChatCompletionsBackend(api_key="secret")
        with patch("srtai.translate.backend.requests.post", return_value=make_response(chat_body('{"translations": ["hola"]}'))) as post:
            result = backend.invoke("my-model", "eu-west-1", "payload")

        assert result == '{"translations": ["hola"]}'
        args, kwargs = post.call_args
        assert args[0] == "https://bedrock-runtime.eu-west-1.amazonaws.com/openai/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        body = json.loads(kwargs["data"])
        assert body["model"] == "my-model"
        assert body["messages"] == [{"role": "user", "content": "payload"}]
        assert body["temperature"] == 0.0

    def test_region_falls_back_to_env_then_default(self, monkeypatch):
        backend = ChatCompletionsBackend()
        assert backend._endpoint(None) == DEFAULT_CHAT_URL.format(region="us-east-1")

        monkeypatch.setenv("AWS_REGION", "ap-south-1")
        assert backend._endpoint(None) == DEFAULT_CHAT_URL.format(region="ap-south-1")

    def test_url_and_key_from_env(self, monkeypatch):
        monkeypatch.setenv("SRTAI_LLM_URL", "http://localhost:8080/v1/chat/completions")
        monkeypatch.setenv("AWS_BEARER_TOKEN_BEDROCK", "token")
        monkeypatch.setenv("SRTAI_LLM_TIMEOUT", "5")
        backend = ChatCompletionsBackend()

        with patch("srtai.translate.backend.requests.post", return_value=make_response(chat_body("x"))) as post:
            backend.invoke("m", "us-west-2", "p")

        args, kwargs = post.call_args
        assert args[0] == "http://localhost:8080/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer token"
        assert kwargs["timeout"] == 5.0

    def test_no_auth_header_without_key(self):
        backend = ChatCompletionsBackend(url="http://localhost/v1")
        with patch("srtai.translate.backend.requests.post", return_value=make_response(chat_body("x"))) as post:
            backend.invoke("m", None, "p")

        assert "Authorization" not in post.call_args.kwargs["headers"]

    def test_proxies_from_env(self, monkeypatch):
        monkeypatch.setenv("SRTAI_HTTPS_PROXY", "http://proxy:3128")

        assert ChatCompletionsBackend().proxies == {"https": "http://proxy:3128"}
        monkeypatch.delenv("SRTAI_HTTPS_PROXY")
        assert ChatCompletionsBackend().proxies is None

    def test_text_field_fallback(self):
        backend = ChatCompletionsBackend(url="http://localhost/v1")
        body = {"choices": [{"text": '["hola"]'}]}
        with patch("srtai.translate.backend.requests.post", return_value=make_response(body)):
            assert backend.invoke("m", None, "p") == '["hola"]'

    def test_http_error(self):
        backend = ChatCompletionsBackend(url="http://localhost/v1")
        error = requests.HTTPError("500 Server Error", response=Mock(text="internal"))
        with patch("srtai.translate.backend.requests.post", return_value=make_response({}, status_error=error)):
            with pytest.raises(BackendError) as exc_info:
                backend.invoke("m", None, "p")

        assert exc_info.value.code == "http_error"
        assert "internal" in str(exc_info.value)

    @pytest.mark.parametrize(
        "error, code",
        [
            (requests.Timeout("slow"), "timeout"),
            (requests.ConnectionError("refused"), "transport"),
        ],
    )
    def test_transport_errors(self, error, code):
        backend = ChatCompletionsBackend(url="http://localhost/v1")
        with patch("srtai.translate.backend.requests.post", side_effect=error):
            with pytest.raises(BackendError) as exc_info:
                backend.invoke("m", None, "p")

        assert exc_info.value.code == code

    def test_invalid_json_body(self):
        backend = ChatCompletionsBackend(url="http://localhost/v1")
        with patch("srtai.translate.backend.requests.post", return_value=make_response(json_error=True, text="<html>")):
            with pytest.raises(BackendError):
                backend.invoke("m", None, "p")

    def test_missing_choices_carries_body(self):
        backend = ChatCompletionsBackend(url="http://localhost/v1")
        envelope = {"Output": {"__type": "com.amazon.coral.service#AccessDeniedException"}, "Version": "1.0"}
        with patch("srtai.translate.backend.requests.post", return_value=make_response(envelope)):
            with pytest.raises(BackendError) as exc_info:
                backend.invoke("m", None, "p")

        assert exc_info.value.code == "no_choices"
        assert exc_info.value.details["body"] == envelope

    def test_missing_content(self):
        backend = ChatCompletionsBackend(url="http://localhost/v1")
        with patch("srtai.translate.backend.requests.post", return_value=make_response({"choices": [{"message": {}}]})):
            with pytest.raises(BackendError):
                backend.invoke("m", None, "p")


class TestConverseBackend:
    def test_posts_converse_request(self):
        backend = ConverseBackend(api_key="secret")
        with patch("srtai.translate.backend.requests.post", return_value=make_response(converse_body('{"translations": ["hola"]}'))) as post:
            result = backend.invoke("anthropic.claude-3-haiku-20240307-v1:0", "eu-west-1", "payload")

        assert result == '{"translations": ["hola"]}'
        args, kwargs = post.call_args
        assert args[0] == (
            "https://bedrock-runtime.eu-west-1.amazonaws.com/model/"
            "anthropic.claude-3-haiku-20240307-v1%3A0/converse"
        )
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        body = json.loads(kwargs["data"])
        assert body["messages"] == [{"role": "user", "content": [{"text": "payload"}]}]
        assert body["inferenceConfig"] == {"maxTokens": 4096, "temperature": 0.0}
        assert "model" not in body

    def test_model_arn_is_escaped(self):
        backend = ConverseBackend()
        url = backend._endpoint("arn:aws:bedrock:us-east-1:123:inference-profile/us.model", None)

        assert url == (
            "https://bedrock-runtime.us-east-1.amazonaws.com/model/"
            "arn%3Aaws%3Abedrock%3Aus-east-1%3A123%3Ainference-profile%2Fus.model/converse"
        )

    def test_region_and_token_from_env(self, monkeypatch):
        monkeypatch.setenv("AWS_REGION", "ap-south-1")
        monkeypatch.setenv("AWS_BEARER_TOKEN_BEDROCK", "token")
        backend = ConverseBackend()

        with patch("srtai.translate.backend.requests.post", return_value=make_response(converse_body("x"))) as post:
            backend.invoke("m", None, "p")

        args, kwargs = post.call_args
        assert args[0].startswith("https://bedrock-runtime.ap-south-1.amazonaws.com/")
        assert kwargs["headers"]["Authorization"] == "Bearer token"

    def test_skips_non_text_blocks(self):
        body = {"output": {"message": {"content": [{"reasoningContent": {}}, {"text": "[\"hola\"]"}]}}}
        with patch("srtai.translate.backend.requests.post", return_value=make_response(body)):
            assert ConverseBackend().invoke("m", None, "p") == '["hola"]'

    def test_envelope_without_output_carries_body(self):
        envelope = {"Output": {"__type": "com.amazon.coral.service#AccessDeniedException"}, "Version": "1.0"}
        with patch("srtai.translate.backend.requests.post", return_value=make_response(envelope)):
            with pytest.raises(BackendError) as exc_info:
                ConverseBackend().invoke("m", None, "p")

        assert exc_info.value.code == "no_message"
        assert exc_info.value.details["body"] == envelope

    def test_empty_content(self):
        with patch("srtai.translate.backend.requests.post", return_value=make_response(converse_body(None))):
            with pytest.raises(BackendError) as exc_info:
                ConverseBackend().invoke("m", None, "p")

        assert exc_info.value.code == "no_content"

    def test_http_error_shares_mapping(self):
        error = requests.HTTPError("403 Forbidden", response=Mock(text="denied"))
        with patch("srtai.translate.backend.requests.post", return_value=make_response({}, status_error=error)):
            with pytest.raises(BackendError) as exc_info:
                ConverseBackend().invoke("m", None, "p")

        assert exc_info.value.code == "http_error"
        assert "denied" in str(exc_info.value)

    def test_requires_model_id(self):
        with patch("srtai.translate.backend.requests.post") as post:
            with pytest.raises(BackendError):
                ConverseBackend().invoke("", None, "p")
        post.assert_not_called()


class TestSimpleBackends:
    def test_callable_backend_delegates(self):
        fn = Mock(return_value="raw")

        assert CallableBackend(fn).invoke("m", "r", "p") == "raw"
        fn.assert_called_once_with("m", "r", "p")

    def test_echo_backend(self):
        payload = build_request_payload("translate", ["uno", "dos"])

        assert json.loads(EchoBackend().invoke("m", None, payload)) == {"translations": ["uno", "dos"]}

    def test_echo_backend_rejects_malformed_payload(self):
        with pytest.raises(BackendError):
            EchoBackend().invoke("m", None, "not json")


class TestGetBackend:
    def test_default_is_converse(self):
        assert isinstance(get_backend(), ConverseBackend)

    def test_default_is_chat_when_url_configured(self, monkeypatch):
        monkeypatch.setenv("SRTAI_LLM_URL", "http://localhost:8080/v1/chat/completions")

        assert isinstance(get_backend(), ChatCompletionsBackend)

    def test_known_names(self):
        assert isinstance(get_backend("converse"), ConverseBackend)
        assert isinstance(get_backend("CHAT"), ChatCompletionsBackend)
        assert isinstance(get_backend("echo"), EchoBackend)

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            get_backend("nope")
