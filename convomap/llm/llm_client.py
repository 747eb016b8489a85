"""
Gemini access for ConvoMap using Google GenAI

Easy configuration: Modify the CONFIG class below to change models, temperature, or other settings.
Callers receive a parsed JSON object or an exception; deciding what to do on
failure (usually a local heuristic) is left to them.
"""
import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Optional

from google import genai
from google.genai import types
from google.genai.types import HttpOptions, SafetySetting

logger = logging.getLogger(__name__)


# ==================== CONFIGURATION ====================

@dataclass
class CONFIG:
    """Central configuration for LLM integration"""

    # Model selection (overridable through GEMINI_MODEL)
    DEFAULT_MODEL = "gemini-2.5-flash"

    # Generation parameters
    TEMPERATURE = 0.3

    # Request timeout, in milliseconds
    TIMEOUT_MS = 30000

    @staticmethod
    def get_safety_settings():
        return [
            SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_NONE"),
            SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_NONE"),
            SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_NONE"),
            SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_NONE"),
        ]


# ==================== INITIALIZATION ====================

_CLIENT: Optional[genai.Client] = None

_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


def _get_api_key() -> Optional[str]:
    """Get the Gemini API key from environment or settings"""
    api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
    if not api_key:
        from convomap import settings
        api_key = settings.GEMINI_API_KEY
    return api_key


def is_llm_configured() -> bool:
    return bool(_get_api_key())


def _get_client() -> genai.Client:
    """Get or create the genai client instance"""
    global _CLIENT
    if _CLIENT is None:
        api_key = _get_api_key()
        if not api_key:
            raise ValueError(
                "No Gemini API key available. Set GEMINI_API_KEY (or GOOGLE_API_KEY) "
                "in the environment or .env file."
            )
        http_options = HttpOptions(timeout=CONFIG.TIMEOUT_MS)
        _CLIENT = genai.Client(api_key=api_key, http_options=http_options)
    return _CLIENT


# ==================== HELPERS ====================

def extract_json_object(text: str) -> dict[str, Any]:
    """
    Pull the first-to-last brace span out of a model response and parse it.

    Models frequently wrap JSON in markdown fences or prose; anything outside
    the outermost braces is ignored.

    Raises:
        ValueError: If no JSON object can be found or parsed
    """
    match = _JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise ValueError("No JSON object found in LLM response")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"LLM returned invalid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError("LLM response JSON is not an object")
    return parsed


# ==================== PUBLIC API ====================

async def call_llm_json(
    prompt: str,
    stage_type: str,
    model_name: Optional[str] = None,
    temperature: Optional[float] = None,
    max_output_tokens: Optional[int] = None,
) -> dict[str, Any]:
    """
    Call Gemini and return the JSON object contained in its response

    Args:
        prompt: The prompt to send to the LLM
        stage_type: Label used for logging (e.g. "chunk_classification")
        model_name: The model to use (default: settings.GEMINI_MODEL)
        temperature: Sampling temperature (default: CONFIG.TEMPERATURE)
        max_output_tokens: Optional cap on the response length

    Returns:
        The parsed JSON object

    Raises:
        ValueError: If the API key is missing or the response holds no JSON object
    """
    if model_name is None:
        from convomap import settings
        model_name = settings.GEMINI_MODEL or CONFIG.DEFAULT_MODEL

    client = _get_client()
    logger.info(f"Running {stage_type} LLM with model: {model_name}")

    config = types.GenerateContentConfig(
        response_mime_type="application/json",
        temperature=CONFIG.TEMPERATURE if temperature is None else temperature,
        max_output_tokens=max_output_tokens,
        safety_settings=CONFIG.get_safety_settings(),
    )
    response = await client.aio.models.generate_content(
        model=model_name,
        contents=prompt,
        config=config,
    )
    logger.debug(f"{stage_type} raw response: {response.text!r}")
    return extract_json_object(response.text or "")
