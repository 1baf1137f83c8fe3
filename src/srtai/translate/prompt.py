from __future__ import annotations

import json
from typing import Dict, Optional, Sequence

# 常用语言的可读描述，用于拼进提示词；未知代码原样使用
_LANGUAGE_NAMES: Dict[str, str] = {
    "ar": "Arabic",
    "bg": "Bulgarian",
    "ca": "Catalan",
    "cs": "Czech",
    "da": "Danish",
    "de": "German",
    "el": "Greek",
    "en": "English",
    "es": "Spanish",
    "eu": "Basque",
    "fi": "Finnish",
    "fr": "French",
    "gl": "Galician",
    "he": "Hebrew",
    "hi": "Hindi",
    "hu": "Hungarian",
    "id": "Indonesian",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "nl": "Dutch",
    "no": "Norwegian",
    "pl": "Polish",
    "pt": "Portuguese",
    "pt-br": "Brazilian Portuguese",
    "ro": "Romanian",
    "ru": "Russian",
    "sv": "Swedish",
    "th": "Thai",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "vi": "Vietnamese",
    "zh": "Chinese",
}


def describe_language(code: str) -> str:
    """
    将语言代码转换为更易读的说明，例如 "es" -> "Spanish (es)"。

    只影响提示词内容；未知代码原样返回，避免错误映射。
    """
    raw = (code or "").strip()
    name = _LANGUAGE_NAMES.get(raw.lower())
    if name is None:
        return raw
    return f"{name} ({raw})"


def build_instruction(target_language: str, context_hint: Optional[str] = None) -> str:
    """
    构建单个 batch 的翻译指令。

    要求后端只返回一个 JSON 对象 {"translations": [...]}，与输入一一对应且保持顺序；
    内联标签（如 <font color="#fff">...</font>）原样保留，只翻译标签内的文字。
    提供 context_hint（通常是文件名）时，追加利用其推断剧集/电影、统一术语的说明。
    """
    lines = [f"Translate the following subtitle entries to {describe_language(target_language)}."]
    if context_hint:
        lines.append(
            f'The file name is "{context_hint}". Use this to infer context '
            "(show/movie title, characters, specific terminology) to improve translation quality."
        )
        lines.append(
            "Use canonical translations for show-specific catchphrases and terms, and keep them "
            "consistent across all entries of this file."
        )
    lines.append(
        'Return ONLY a single valid JSON object with exactly one key named "translations" '
        "whose value is an array of strings, one item per input text, in the same order."
    )
    lines.append(
        "Each translation must preserve any inline HTML-like tags "
        '(for example <font color="#fff">...</font>) in-place; '
        "translate only the textual content inside tags."
    )
    lines.append("Do not include any extra text, markdown, or explanation. Example output:")
    lines.append('{\n  "translations": ["translated text 1", "translated text 2"]\n}')
    return "\n".join(lines)


def build_request_payload(instruction: str, texts: Sequence[str]) -> str:
    return json.dumps({"instruction": instruction, "texts": list(texts)}, ensure_ascii=False)
