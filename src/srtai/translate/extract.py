from __future__ import annotations

"""
从后端原始响应中提取有序的译文列表。

模型的输出并不总是干净的 JSON：可能夹杂说明文字、被二次编码成字符串，
也可能是服务端返回的错误信封。这里按固定顺序逐一尝试，第一个成功的路径生效：

  1. 整体解析为 JSON（必要时对嵌套的 JSON 字符串再解一次）；
  2. 数组：直接使用；
  3. 对象且包含 translations 数组：使用该数组；
  4. 以上都不成立时，从第一个 { 或 [ 开始寻找最短的括号平衡子串再解析；
  5. 错误信封（Output.__type）视为 BackendError，交给重试层；
  6. 最后退化为按行拆分（丢弃空行）。

结果最终被规整为恰好 expected 条。
"""

import json
import re
from typing import Any, List, Mapping, Optional, Sequence

from srtai.errors import BackendError, ResponseFormatError
from srtai.log import get_logger

logger = get_logger(__name__)

_OPENERS = {"{": "}", "[": "]"}
_LINE_SPLIT_RE = re.compile(r"\r?\n")
# 清理译文中的控制字符（保留 \t 与 \n），包括 \u007f
_CONTROL_CHARS_RE = re.compile(r"[\u0000-\u0008\u000B-\u001F\u007F]")

_UNPARSED = object()


def unwrap_nested_json(value: Any) -> Any:
    """
    处理二次编码的响应：若 value 是看起来像 JSON 的字符串（以 { 或 [ 开头），
    则再解析一次；解析失败时原样返回。
    """
    if isinstance(value, str):
        candidate = value.strip()
        if candidate.startswith(tuple(_OPENERS)):
            try:
                return json.loads(candidate)
            except json.JSONDecodeError:
                return value
    return value


def find_balanced_json(text: str) -> Optional[str]:
    """
    从第一个 { 或 [ 开始，只跟踪同类括号的嵌套深度，
    返回最短的括号平衡子串；找不到时返回 None。
    """
    match = re.search(r"[\[{]", text)
    if match is None:
        return None
    start = match.start()
    open_ch = text[start]
    close_ch = _OPENERS[open_ch]
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
        if depth == 0:
            return text[start:i + 1]
    return None


def is_error_envelope(value: Any) -> bool:
    """服务端错误信封：包含 Output 对象，且带有 __type 判别字段。"""
    if not isinstance(value, Mapping):
        return False
    output = value.get("Output")
    return isinstance(output, Mapping) and bool(output.get("__type"))


def _coerce_item(item: Any) -> str:
    if item is None:
        return ""
    if isinstance(item, str):
        return item
    # 数字、布尔、嵌套对象按 JSON 文本保留（true 而不是 True）
    return json.dumps(item, ensure_ascii=False)


def _as_translation_list(value: Any) -> Optional[List[str]]:
    if is_error_envelope(value):
        raise BackendError(
            f"Backend returned an error envelope: {json.dumps(value, ensure_ascii=False)[:500]}",
            code="error_envelope",
            details={"envelope": value},
        )
    if isinstance(value, list):
        return [_coerce_item(item) for item in value]
    if isinstance(value, Mapping):
        translations = value.get("translations")
        if isinstance(translations, list):
            return [_coerce_item(item) for item in translations]
    return None


def _loads(text: str) -> Any:
    try:
        return unwrap_nested_json(json.loads(text))
    except json.JSONDecodeError:
        return _UNPARSED


def normalize_length(items: Sequence[str], expected: int) -> List[str]:
    """
    规整为恰好 expected 条：不足时重复最后一条（列表为空则补空字符串），
    多余时截断。
    """
    result = list(items[:expected]) if expected > 0 else []
    while len(result) < expected:
        result.append(result[-1] if result else "")
    return result


def extract_translations(raw: str, expected: int) -> List[str]:
    """
    将后端原始响应转换为恰好 expected 条的译文列表。

    遇到错误信封时抛出 BackendError；响应中没有任何可用内容时抛出
    ResponseFormatError，两者都由重试层处理。
    """
    text = "" if raw is None else str(raw).strip()

    items: Optional[List[str]] = None
    fallback_text = text

    parsed = _loads(text)
    if parsed is not _UNPARSED:
        items = _as_translation_list(parsed)
        if items is None and isinstance(parsed, str):
            # 整体是一个普通 JSON 字符串时，按其内容做后续的按行拆分
            fallback_text = parsed

    if items is None:
        candidate = find_balanced_json(text)
        if candidate is not None:
            nested = _loads(candidate)
            if nested is not _UNPARSED:
                items = _as_translation_list(nested)

    if items is None:
        items = [line for line in _LINE_SPLIT_RE.split(fallback_text) if line.strip()]
        if not items:
            raise ResponseFormatError(
                "Backend response contains no usable translations",
                code="empty_response",
                details={"raw": text[:500]},
            )
        logger.debug("No JSON structure found, fell back to %d newline-separated lines", len(items))

    cleaned = [_CONTROL_CHARS_RE.sub("", item) for item in items]
    if len(cleaned) != expected:
        logger.debug("Normalizing %d extracted item(s) to %d", len(cleaned), expected)
    return normalize_length(cleaned, expected)
