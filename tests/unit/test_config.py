# pylint: disable=missing-module-docstring,missing-function-docstring
import pytest

from config import AppConfig
from constants import RESOLVER_TIMEOUT_S, SPEECH_LANGUAGE_DEFAULT


ENV_KEYS = (
    "ENV",
    "LOG_LEVEL",
    "LLM_PROVIDER",
    "LLM_MODEL",
    "OPENAI_API_KEY",
    "GROQ_API_KEY",
    "RESOLVER_TIMEOUT_S",
    "SPEECH_LANGUAGE",
    "CAPTURE_PHRASE_LIMIT_S",
    "CAPTURE_DEVICE_INDEX",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    config = AppConfig.load_from_env()

    assert config.llm_provider == "groq"
    assert config.llm_model == "llama-3.3-70b-versatile"
    assert config.remote_api_key is None
    assert config.resolver_timeout_s == RESOLVER_TIMEOUT_S
    assert config.speech_language == SPEECH_LANGUAGE_DEFAULT
    assert config.capture_device_index is None


def test_openai_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")

    config = AppConfig.load_from_env()

    assert config.llm_model == "gpt-4o-mini"
    assert config.remote_api_key == "sk-test"


def test_numeric_values_tolerate_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOLVER_TIMEOUT_S", "fast")
    monkeypatch.setenv("CAPTURE_PHRASE_LIMIT_S", "12.5  # seconds")
    monkeypatch.setenv("CAPTURE_DEVICE_INDEX", "two")

    config = AppConfig.load_from_env()

    assert config.resolver_timeout_s == RESOLVER_TIMEOUT_S
    assert config.capture_phrase_limit_s == 12.5
    assert config.capture_device_index is None
