from typing import List

import pytest

from srtai.subtitles import Cue

_ENV_VARS = (
    "SRTAI_MODEL_ID",
    "BEDROCK_MODEL_ID",
    "AWS_REGION",
    "SRTAI_LLM_URL",
    "SRTAI_LLM_API_KEY",
    "AWS_BEARER_TOKEN_BEDROCK",
    "SRTAI_LLM_TIMEOUT",
    "SRTAI_HTTP_PROXY",
    "SRTAI_HTTPS_PROXY",
    "SRTAI_LOG_LEVEL",
    "SRTAI_BACKEND",
)

SAMPLE_SRT = (
    "1\n"
    "00:00:01,000 --> 00:00:02,500\n"
    'Hello <font color="#fff">world</font>\n'
    "\n"
    "2\n"
    "00:00:03,000 --> 00:00:04,000\n"
    "Tom &amp; Jerry\n"
    "second line\n"
    "\n"
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_srt() -> str:
    return SAMPLE_SRT


@pytest.fixture
def make_cues():
    def factory(*texts: str) -> List[Cue]:
        return [
            Cue(index=i, start=i * 1000, end=i * 1000 + 500, text=text)
            for i, text in enumerate(texts, start=1)
        ]

    return factory


@pytest.fixture
def sleeps():
    """记录退避等待时长，代替 time.sleep。"""
    return []
