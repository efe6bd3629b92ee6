import os
from dataclasses import replace

import pytest

from incident_service.ai.chat_client import ChatCompletionEnrichmentClient
from incident_service.ai.mock_client import MockEnrichmentClient
from incident_service.bootstrap import (
    build_coordinator,
    build_enrichment_client,
    load_dotenv,
    resolve_provider,
)
from incident_service.config import Settings
from incident_service.storage.repository import IncidentRepository


@pytest.fixture
def settings(monkeypatch) -> Settings:
    for name in ("AI_PROVIDER", "OPENAI_API_KEY", "OPENROUTER_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    return Settings.from_env()


def test_load_dotenv_sets_missing_vars(tmp_path, monkeypatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("# comment\nA=1\nexport B='hello'\n", encoding="utf-8")
    monkeypatch.delenv("A", raising=False)
    monkeypatch.delenv("B", raising=False)

    load_dotenv(str(env_file))

    assert os.environ["A"] == "1"
    assert os.environ["B"] == "hello"


def test_load_dotenv_does_not_override_existing(tmp_path, monkeypatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("A=2\n", encoding="utf-8")
    monkeypatch.setenv("A", "keep")

    load_dotenv(str(env_file))

    assert os.environ["A"] == "keep"


def test_load_dotenv_missing_file_is_ignored(tmp_path) -> None:
    load_dotenv(str(tmp_path / "absent.env"))


def test_auto_provider_falls_back_to_mock(settings) -> None:
    assert resolve_provider(settings) == "mock"
    assert isinstance(build_enrichment_client(settings), MockEnrichmentClient)


def test_auto_provider_prefers_openai_key(settings) -> None:
    configured = replace(settings, openai_api_key="sk-1", openrouter_api_key="or-1")
    assert resolve_provider(configured) == "openai"


def test_auto_provider_uses_openrouter_key(settings) -> None:
    configured = replace(settings, openrouter_api_key="or-1")

    client = build_enrichment_client(configured)

    assert resolve_provider(configured) == "openrouter"
    assert isinstance(client, ChatCompletionEnrichmentClient)
    assert client.provider_name == "openrouter"


def test_unknown_provider_raises(settings) -> None:
    with pytest.raises(ValueError, match="Unknown AI_PROVIDER"):
        build_enrichment_client(replace(settings, ai_provider="bard"))


def test_build_coordinator_from_settings(settings, tmp_path) -> None:
    repo = IncidentRepository(f"sqlite:///{tmp_path}/boot.db")

    with build_coordinator(replace(settings, enrichment_max_attempts=2), repo) as coordinator:
        assert coordinator is not None
