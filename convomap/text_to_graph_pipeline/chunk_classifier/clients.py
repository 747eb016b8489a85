"""
Classification collaborators for the ChunkClassifier

Each collaborator is an awaitable callable (chunk_text, previous_label) -> dict
that raises on failure. The ChunkClassifier owns defaults and fallback.
"""

import logging
from typing import Any, Optional

import httpx

from convomap import settings
from convomap.llm.llm_client import call_llm_json, is_llm_configured
from convomap.text_to_graph_pipeline.chunk_classifier.classifier import (
    ChunkClassifier,
    ClassificationError,
)

logger = logging.getLogger(__name__)

CLASSIFICATION_PROMPT = (
    "You are classifying and summarizing a conversation. Previous summary: {previous}\n"
    "Transcript chunk (15s): {transcript}\n"
    "Return JSON with keys: summary (3-4 words), isOnTrack (boolean), topic (short)."
)


class HttpClassificationClient:
    """Calls an external classification endpoint over HTTP"""

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            url: Endpoint accepting POST {transcript, previousSummary}
            api_key: Optional bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, chunk_text: str, previous_label: Optional[str]) -> dict[str, Any]:
        payload = {"transcript": chunk_text, "previousSummary": previous_label}
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        # Fresh client per request to avoid event loop lifecycle issues
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, json=payload, headers=headers)
            response.raise_for_status()
            try:
                data = response.json()
            except ValueError as e:
                raise ClassificationError(f"Classifier returned malformed JSON: {e}") from e

        if not isinstance(data, dict):
            raise ClassificationError("Classifier response is not a JSON object")
        return data


class GeminiClassificationClient:
    """Classifies chunks by prompting Gemini for a JSON answer"""

    def __init__(self, model_name: Optional[str] = None):
        self.model_name = model_name

    async def __call__(self, chunk_text: str, previous_label: Optional[str]) -> dict[str, Any]:
        prompt = CLASSIFICATION_PROMPT.format(
            previous=previous_label or "(none)",
            transcript=chunk_text,
        )
        return await call_llm_json(prompt, "chunk_classification", model_name=self.model_name)


def build_chunk_classifier() -> ChunkClassifier:
    """
    Pick the classification collaborator from configuration:
    CLASSIFIER_URL first, then Gemini when an API key is set, else the heuristic alone.
    """

    if settings.CLASSIFIER_URL:
        logger.info(f"Chunk classification via HTTP endpoint {settings.CLASSIFIER_URL}")
        collaborator = HttpClassificationClient(
            settings.CLASSIFIER_URL,
            api_key=settings.CLASSIFIER_API_KEY,
            timeout=settings.CLASSIFIER_TIMEOUT_SECONDS,
        )
    elif is_llm_configured():
        logger.info("Chunk classification via Gemini")
        collaborator = GeminiClassificationClient()
    else:
        logger.info("No classifier configured, chunks use the local heuristic")
        collaborator = None

    return ChunkClassifier(collaborator, timeout_seconds=settings.CLASSIFIER_TIMEOUT_SECONDS)
