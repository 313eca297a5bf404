from types import SimpleNamespace

import httpx
import openai
import pytest

import merge_hint
from merge_config import Settings
from merge_core import InvalidBoardError

BOARD = [
    [2, 0, 0, 0],
    [0, 4, 0, 0],
    [0, 0, 8, 0],
    [0, 0, 0, 16],
]


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(content=None, error=None):
    completions = FakeCompletions(content=content, error=error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


@pytest.fixture
def settings():
    return Settings(openai_api_key="test-key", hint_model="test-model")


def test_hint_text_is_returned(settings):
    client, completions = fake_client("Move DOWN: stack tiles along the bottom row.\n")
    hint = merge_hint.get_hint(BOARD, 120, client=client, settings=settings)
    assert hint == "Move DOWN: stack tiles along the bottom row."

    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["max_tokens"] == merge_hint.HINT_MAX_TOKENS
    assert call["temperature"] == merge_hint.HINT_TEMPERATURE
    prompt = call["messages"][0]["content"]
    assert "2,0,0,0\n0,4,0,0\n0,0,8,0\n0,0,0,16" in prompt
    assert "Current Score: 120." in prompt


def test_empty_response_falls_back(settings):
    client, _ = fake_client("   ")
    assert merge_hint.get_hint(BOARD, 0, client=client, settings=settings) == merge_hint.EMPTY_HINT_MESSAGE


@pytest.mark.parametrize("error", [
    openai.OpenAIError("boom"),
    openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")),
    openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")),
])
def test_service_failures_degrade(settings, error):
    client, _ = fake_client(error=error)
    assert merge_hint.get_hint(BOARD, 0, client=client, settings=settings) == merge_hint.UNAVAILABLE_MESSAGE


def test_missing_key_short_circuits():
    assert merge_hint.get_hint(BOARD, 0, settings=Settings()) == merge_hint.MISSING_KEY_MESSAGE


def test_board_is_not_mutated(settings):
    board = [list(row) for row in BOARD]
    client, _ = fake_client("Move LEFT: fine")
    merge_hint.get_hint(board, 0, client=client, settings=settings)
    assert board == BOARD


def test_malformed_board_is_rejected_before_any_request(settings):
    client, completions = fake_client("unused")
    with pytest.raises(InvalidBoardError):
        merge_hint.get_hint([[0, 3], [0, 0]], 0, client=client, settings=settings)
    assert completions.calls == []


def test_create_client():
    assert merge_hint.create_client(Settings()) is None
    client = merge_hint.create_client(Settings(openai_api_key="sk-test", hint_timeout=3.0))
    assert isinstance(client, openai.OpenAI)


def test_unbuildable_client_degrades():
    settings = Settings(openai_api_key="k", openai_base_url="http://[::1")
    assert merge_hint.get_hint(BOARD, 0, settings=settings) == merge_hint.UNAVAILABLE_MESSAGE


def test_reply_without_message_degrades(settings):
    completions = SimpleNamespace(create=lambda **kwargs: SimpleNamespace(choices=[SimpleNamespace(message=None)]))
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    assert merge_hint.get_hint(BOARD, 0, client=client, settings=settings) == merge_hint.UNAVAILABLE_MESSAGE
