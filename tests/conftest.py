"""
Shared fixtures for the support bot tests.

FakeGateway stands in for Azure AI Language so no test touches the network.
"""
import asyncio
import os
import sys
from typing import List, Optional

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.settings import Settings
from flows import DialogRouter
from utils.session_store import SessionStore
from utils.text_analysis import AnalysisResult, SentimentResult, TextAnalysisGateway


class FakeGateway(TextAnalysisGateway):
    """Returns a canned analysis and records every analyzed text."""

    def __init__(
        self,
        sentiment: str = "neutral",
        key_phrases: Optional[List[str]] = None,
        language: str = "en",
        pii_categories: Optional[List[str]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.sentiment = sentiment
        self.key_phrases = key_phrases or []
        self.language = language
        self.pii_categories = pii_categories or []
        self.error = error
        self.delay = delay
        self.calls: List[str] = []
        self.closed = False

    async def analyze(self, text: str) -> AnalysisResult:
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        scores = {"positive": 0.1, "neutral": 0.1, "negative": 0.1}
        scores[self.sentiment] = 0.8
        return AnalysisResult(
            sentiment=SentimentResult(label=self.sentiment, **scores),
            key_phrases=list(self.key_phrases),
            language=self.language,
            pii_categories=list(self.pii_categories),
        )

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def settings():
    return Settings(language_endpoint="https://example.cognitiveservices.azure.com/", language_key="test-key")


@pytest.fixture
def router(store, gateway, settings):
    return DialogRouter(store, gateway, settings)
