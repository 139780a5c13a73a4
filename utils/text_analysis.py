"""
Azure AI Language wrapper.

Runs sentiment analysis, key phrase extraction, language detection and PII
entity recognition on a single message. The four calls are issued together
and each one may fail on its own; a failed call leaves its field as None.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from azure.ai.textanalytics.aio import TextAnalyticsClient
from azure.core.credentials import AzureKeyCredential

from utils.logger import get_logger

logger = get_logger(__name__)

TASKS = ("sentiment", "key_phrases", "language", "pii")


@dataclass
class SentimentResult:
    label: str
    positive: float = 0.0
    neutral: float = 0.0
    negative: float = 0.0


@dataclass
class AnalysisResult:
    """Per-message analysis. Any field may be None when its call failed."""
    sentiment: Optional[SentimentResult] = None
    key_phrases: Optional[List[str]] = None
    language: Optional[str] = None
    pii_categories: Optional[List[str]] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def empty(cls, reason: Optional[str] = None) -> "AnalysisResult":
        """Neutral result used when the whole analysis is unavailable."""
        errors = {task: reason for task in TASKS} if reason else {}
        return cls(errors=errors)

    @property
    def sentiment_label(self) -> str:
        return self.sentiment.label if self.sentiment else "neutral"

    @property
    def language_code(self) -> str:
        return self.language or "unknown"

    def top_key_phrases(self, limit: int = 6) -> List[str]:
        return list(self.key_phrases or [])[:limit]


class TextAnalysisGateway:
    """Interface for text analysis providers."""

    async def analyze(self, text: str) -> AnalysisResult:
        raise NotImplementedError

    async def close(self) -> None:
        return None


def _first_document(task: str, outcome: Any, errors: Dict[str, str]) -> Optional[Any]:
    """Unwrap one gathered outcome into its single document result, or None."""
    if isinstance(outcome, BaseException):
        errors[task] = str(outcome) or outcome.__class__.__name__
        logger.warning(f"Text analysis '{task}' failed: {errors[task]}")
        return None
    if not outcome:
        errors[task] = "empty response"
        return None
    doc = outcome[0]
    if getattr(doc, "is_error", False):
        error = getattr(doc, "error", None)
        errors[task] = getattr(error, "message", None) or str(error)
        logger.warning(f"Text analysis '{task}' returned a document error: {errors[task]}")
        return None
    return doc


def _unique(values: List[str]) -> List[str]:
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


class AzureTextAnalysisGateway(TextAnalysisGateway):
    """Analysis gateway backed by the Azure AI Language async client."""

    def __init__(self, endpoint: str = "", key: str = "", client: Optional[Any] = None):
        if client is None:
            if not endpoint:
                raise ValueError("LANGUAGE_ENDPOINT is required for Azure text analysis")
            if not key:
                raise ValueError("LANGUAGE_KEY is required for Azure text analysis")
            client = TextAnalyticsClient(endpoint=endpoint, credential=AzureKeyCredential(key))
        self._client = client

    async def analyze(self, text: str) -> AnalysisResult:
        """
        Analyze one message.

        Args:
            text: User message

        Returns:
            AnalysisResult with whichever sub-analyses succeeded
        """
        documents = [text.strip()]

        outcomes = await asyncio.gather(
            self._client.analyze_sentiment(documents),
            self._client.extract_key_phrases(documents),
            self._client.detect_language(documents),
            self._client.recognize_pii_entities(documents),
            return_exceptions=True,
        )

        errors: Dict[str, str] = {}
        sentiment_doc, phrases_doc, language_doc, pii_doc = (
            _first_document(task, outcome, errors) for task, outcome in zip(TASKS, outcomes)
        )

        result = AnalysisResult(errors=errors)

        if sentiment_doc is not None:
            scores = sentiment_doc.confidence_scores
            result.sentiment = SentimentResult(
                label=sentiment_doc.sentiment,
                positive=float(scores.positive),
                neutral=float(scores.neutral),
                negative=float(scores.negative),
            )

        if phrases_doc is not None:
            result.key_phrases = list(phrases_doc.key_phrases or [])

        if language_doc is not None and language_doc.primary_language is not None:
            result.language = language_doc.primary_language.iso6391_name

        if pii_doc is not None:
            result.pii_categories = _unique([str(e.category) for e in (pii_doc.entities or [])])

        logger.debug(
            f"Analysis: sentiment={result.sentiment_label}, lang={result.language_code}, "
            f"phrases={len(result.key_phrases or [])}, pii={result.pii_categories}, failed={list(errors)}"
        )
        return result

    async def close(self) -> None:
        await self._client.close()
