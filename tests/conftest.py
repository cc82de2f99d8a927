from typing import Dict, List, Optional, Sequence

import pytest

from carenexa.audit import reset_audit_recorder
from carenexa.config import API_KEY_ENV_NAMES
from carenexa.health.quests import reset_quest_boards
from carenexa.llm import GenerationResult, ProviderChain
from carenexa.pins import reset_pin_repository
from carenexa.ratelimit import reset_rate_limiter


class FakeProvider:
    """Provider double: returns canned text, or fails with ``error``."""

    def __init__(self, name: str, text: str = "", error: Optional[BaseException] = None):
        self.name = name
        self.text = text
        self.error = error
        self.calls: List[str] = []

    def generate(
        self, prompt: str, attachments: Optional[Sequence[Dict[str, str]]] = None
    ) -> GenerationResult:
        self.calls.append(prompt)
        if self.error is not None:
            return GenerationResult(model=self.name, error=self.error)
        return GenerationResult(text=self.text, model=self.name)


class ScriptedProvider(FakeProvider):
    """Answers successive prompts with successive texts."""

    def __init__(self, name: str, *texts: str):
        super().__init__(name)
        self._texts = list(texts)

    def generate(self, prompt, attachments=None):
        self.text = self._texts.pop(0) if self._texts else ""
        return super().generate(prompt, attachments)


class FrozenClock:
    def __init__(self, t0: float = 1_700_000_000.0):
        self._now = t0

    def now(self) -> float:
        return self._now

    def travel(self, seconds: float):
        self._now += seconds


def fake_chain(*texts: str) -> ProviderChain:
    return ProviderChain([FakeProvider(f"fake-{i}", t) for i, t in enumerate(texts)])


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch):
    # No real credentials and fresh in-memory singletons for every test
    for name in API_KEY_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    reset_rate_limiter()
    reset_pin_repository()
    reset_audit_recorder()
    reset_quest_boards()
    yield
    reset_rate_limiter()
    reset_pin_repository()
    reset_audit_recorder()
    reset_quest_boards()
