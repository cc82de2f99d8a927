import pytest

from carenexa.config import API_KEY_ENV_NAMES
from carenexa.errors import ConfigurationError, UpstreamUnavailable
from carenexa.llm import ProviderChain, get_provider_chain, get_vision_chain

from tests.conftest import FakeProvider


def test_first_non_empty_answer_wins():
    first = FakeProvider("m1", error=RuntimeError("boom"))
    second = FakeProvider("m2", text="   ")
    third = FakeProvider("m3", text="Drink water.")
    fourth = FakeProvider("m4", text="never asked")

    result = ProviderChain([first, second, third, fourth]).generate("hi")

    assert result.text == "Drink water."
    assert result.model == "m3"
    assert [len(p.calls) for p in (first, second, third, fourth)] == [1, 1, 1, 0]


def test_exhausted_chain_raises_upstream_unavailable():
    err = RuntimeError("last")
    providers = [FakeProvider("m1", text=""), FakeProvider("m2", error=err)]

    with pytest.raises(UpstreamUnavailable) as exc_info:
        ProviderChain(providers).generate("hi")

    assert exc_info.value.last_error is err
    assert exc_info.value.status_code == 503
    assert exc_info.value.to_payload() == {"error": "AI model unavailable", "fallback": True}
    # each candidate tried exactly once
    assert [len(p.calls) for p in providers] == [1, 1]


def test_empty_chain_rejected():
    with pytest.raises(ValueError):
        ProviderChain([])


def test_missing_credential_names_expected_variables():
    with pytest.raises(ConfigurationError) as exc_info:
        get_provider_chain()
    payload = exc_info.value.to_payload()
    assert payload["error"] == "API key not configured"
    assert payload["expected"] == API_KEY_ENV_NAMES

    with pytest.raises(ConfigurationError):
        get_vision_chain()


def test_chain_built_from_configured_models(monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "sk-test")
    monkeypatch.setattr("carenexa.llm.LLM_MODEL_CANDIDATES", ["model-a", "model-b"])
    chain = get_provider_chain()
    assert chain.names == ["model-a", "model-b"]
