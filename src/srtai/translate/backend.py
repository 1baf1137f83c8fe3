from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import requests

from srtai.errors import BackendError
from srtai.log import get_logger, preview

logger = get_logger(__name__)

DEFAULT_CONVERSE_URL = "https://bedrock-runtime.{region}.amazonaws.com/model/{model_id}/converse"
DEFAULT_CHAT_URL = "https://bedrock-runtime.{region}.amazonaws.com/openai/v1/chat/completions"
DEFAULT_REGION = "us-east-1"


class TranslationBackend(ABC):
    """
    文本生成后端的抽象接口。

    编排层只依赖这一个方法；生产实现（HTTP）与测试替身都实现它，
    以便在不改动编排逻辑的前提下替换后端。
    """

    @abstractmethod
    def invoke(self, model_id: str, region: Optional[str], payload: str) -> str:
        """
        发送一次请求并返回后端生成的原始文本。

        传输或服务失败时抛出 BackendError。
        """


class CallableBackend(TranslationBackend):
    """把形如 fn(model_id, region, payload) -> str 的普通函数包装成后端。"""

    def __init__(self, fn: Callable[[str, Optional[str], str], str]) -> None:
        self._fn = fn

    def invoke(self, model_id: str, region: Optional[str], payload: str) -> str:
        return self._fn(model_id, region, payload)


class EchoBackend(TranslationBackend):
    """
    原样返回输入文本的后端，响应格式与真实模型一致（translations 对象）。

    仅用于检查整条链路的连通性，不做任何翻译。
    """

    def invoke(self, model_id: str, region: Optional[str], payload: str) -> str:
        try:
            texts = json.loads(payload).get("texts", [])
        except (ValueError, AttributeError) as exc:
            raise BackendError(f"Echo backend received a malformed payload: {exc}") from exc
        return json.dumps({"translations": texts}, ensure_ascii=False)


class _HttpBackend(TranslationBackend):
    """
    基于 requests 的 HTTP 后端公共部分：鉴权、超时、代理与错误映射。

    环境变量约定（来自 .env 或系统环境）：
      - SRTAI_LLM_API_KEY              # 可选，用于 Authorization: Bearer
      - AWS_BEARER_TOKEN_BEDROCK       # 可选，未设置 SRTAI_LLM_API_KEY 时使用
      - SRTAI_LLM_TIMEOUT              # 可选，单次请求超时（秒），默认 120
      - SRTAI_HTTP_PROXY / SRTAI_HTTPS_PROXY
    """

    label = "HTTP backend"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ) -> None:
        self.api_key = (
            api_key
            or os.getenv("SRTAI_LLM_API_KEY")
            or os.getenv("AWS_BEARER_TOKEN_BEDROCK")
        )
        if timeout is None:
            timeout = float(os.getenv("SRTAI_LLM_TIMEOUT", "120") or "120")
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

        http_proxy = os.getenv("SRTAI_HTTP_PROXY")
        https_proxy = os.getenv("SRTAI_HTTPS_PROXY")
        proxies: dict[str, str] = {}
        if http_proxy:
            proxies["http"] = http_proxy
        if https_proxy:
            proxies["https"] = https_proxy
        self.proxies = proxies or None

    def _post_json(self, url: str, body: Dict[str, Any]) -> Any:
        headers = {
            "Content-Type": "application/json",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        logger.debug("Request to %s: %s", url, preview(json.dumps(body, ensure_ascii=False)))

        try:
            response = requests.post(
                url,
                headers=headers,
                data=json.dumps(body),
                timeout=self.timeout,
                proxies=self.proxies,
            )
            response.raise_for_status()
        except requests.HTTPError as http_err:
            snippet = http_err.response.text[:500] if http_err.response is not None else ""
            raise BackendError(
                f"{self.label} HTTP error: {http_err}; body: {snippet}",
                code="http_error",
            ) from http_err
        except requests.Timeout as timeout_err:
            raise BackendError(f"{self.label} request timeout", code="timeout") from timeout_err
        except requests.RequestException as req_err:
            raise BackendError(f"{self.label} request failed: {req_err}", code="transport") from req_err

        try:
            data = response.json()
        except ValueError as json_err:
            raise BackendError(
                f"{self.label} response is not valid JSON, first 500 chars: {response.text[:500]}",
                code="invalid_body",
            ) from json_err

        logger.debug("Response body: %s", preview(json.dumps(data, ensure_ascii=False)))
        return data


def _region_or_default(region: Optional[str]) -> str:
    return region or os.getenv("AWS_REGION") or DEFAULT_REGION


class ConverseBackend(_HttpBackend):
    """
    使用 Amazon Bedrock Converse API 调用模型，适用于 Bedrock 上的所有对话模型。

    请求体：messages=[{"role": "user", "content": [{"text": payload}]}]，
    inferenceConfig 固定 maxTokens / temperature；响应文本取自
    output.message.content[0].text。鉴权使用 Bedrock API key（Bearer）。
    """

    label = "Converse"

    def __init__(self, url: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.url = url or DEFAULT_CONVERSE_URL

    def _endpoint(self, model_id: str, region: Optional[str]) -> str:
        return self.url.format(
            region=_region_or_default(region),
            model_id=quote(model_id, safe=""),
        )

    def _build_body(self, payload: str) -> Dict[str, Any]:
        return {
            "messages": [
                {"role": "user", "content": [{"text": payload}]},
            ],
            "inferenceConfig": {
                "maxTokens": self.max_tokens,
                "temperature": self.temperature,
            },
        }

    def invoke(self, model_id: str, region: Optional[str], payload: str) -> str:
        if not model_id:
            raise BackendError("Converse requires a model id", code="no_model")
        data = self._post_json(self._endpoint(model_id, region), self._build_body(payload))

        output = data.get("output") if isinstance(data, dict) else None
        message = output.get("message") if isinstance(output, dict) else None
        if not isinstance(message, dict):
            raise BackendError(
                f"Converse response missing 'output.message': {preview(json.dumps(data, ensure_ascii=False), 500)}",
                code="no_message",
                details={"body": data},
            )

        # 取第一个文本块；content 中也可能出现 reasoningContent 等非文本块
        for block in message.get("content") or []:
            if isinstance(block, dict) and isinstance(block.get("text"), str):
                return block["text"]
        raise BackendError(
            f"Converse response has no text content: {message}",
            code="no_content",
        )


class ChatCompletionsBackend(_HttpBackend):
    """
    使用 OpenAI Chat Completions 兼容接口调用外部 LLM。

    默认指向 Amazon Bedrock 的 OpenAI 兼容端点（仅支持 Bedrock 上的 OpenAI 模型），
    URL 中的 {region} 由调用时传入的 region 填充。设置 SRTAI_LLM_URL 可改用任意
    OpenAI 兼容服务，URL 可包含 {region} 占位符。
    """

    label = "Chat completions"

    def __init__(self, url: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.url = url or os.getenv("SRTAI_LLM_URL") or DEFAULT_CHAT_URL

    def _endpoint(self, region: Optional[str]) -> str:
        if "{region}" in self.url:
            return self.url.format(region=_region_or_default(region))
        return self.url

    def _build_body(self, model_id: str, payload: str) -> Dict[str, Any]:
        return {
            "model": model_id,
            "messages": [
                {"role": "user", "content": payload},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def invoke(self, model_id: str, region: Optional[str], payload: str) -> str:
        data = self._post_json(self._endpoint(region), self._build_body(model_id, payload))

        # 兼容多种常见返回格式：choices[0].message.content 或 choices[0].text
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise BackendError(
                f"Chat completions response missing 'choices': {preview(json.dumps(data, ensure_ascii=False), 500)}",
                code="no_choices",
                details={"body": data},
            )

        first = choices[0]
        content: str | None = None
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
        if content is None and "text" in first:
            content = first.get("text")
        if content is None:
            raise BackendError(
                f"Chat completions response missing 'content'/'text' in first choice: {first}",
                code="no_content",
            )
        return content
