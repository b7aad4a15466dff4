"""Thin wrappers around the Gemini API (google-genai SDK).

Every call retries rate limits and transient server errors with exponential
backoff. When no API key is configured the helpers log a warning and degrade
(no embedding, empty text) so imports still succeed in development.
"""
import json
import random
import re
import time
from typing import Any, Dict, List, Optional

from flask import current_app
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

EMBED_CHAR_LIMIT = 8000

TRANSCRIBE_PROMPT = "Transcribe this audio exactly as it is spoken. Do not add any commentary, prefixes, or markdown."


class GeminiNotConfigured(RuntimeError):
    pass


def is_configured() -> bool:
    return bool(current_app.config.get('GEMINI_API_KEY'))


def _client() -> genai.Client:
    api_key = current_app.config.get('GEMINI_API_KEY')
    if not api_key:
        raise GeminiNotConfigured('GEMINI_API_KEY is not configured')
    cached = current_app.extensions.get('genai_client')
    if cached is None or cached[0] != api_key:
        cached = (api_key, genai.Client(api_key=api_key))
        current_app.extensions['genai_client'] = cached
    return cached[1]


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, genai_errors.ServerError):
        return True
    if isinstance(exc, genai_errors.APIError):
        if getattr(exc, 'code', None) == 429:
            return True
    text = str(exc)
    return '429' in text or 'RESOURCE_EXHAUSTED' in text


def _with_retry(label: str, fn):
    max_attempts = int(current_app.config.get('GEMINI_MAX_ATTEMPTS', 5))
    backoff = 1.0
    for attempt in range(1, max_attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if attempt >= max_attempts or not _is_retryable(exc):
                raise
            current_app.logger.warning(
                'Gemini %s rate limited or unavailable, attempt %s/%s, retrying in %.1fs',
                label, attempt, max_attempts, backoff,
            )
            time.sleep(backoff + random.uniform(0, 0.5))
            backoff *= 2


def generate_text(prompt, model: Optional[str] = None) -> str:
    """Run a single generate_content call and return the response text."""
    model = model or current_app.config.get('GEMINI_MODEL', 'gemini-2.5-flash')
    client = _client()
    resp = _with_retry('generate', lambda: client.models.generate_content(model=model, contents=prompt))
    return (resp.text or '').strip()


def extract_json(text: str) -> Dict[str, Any]:
    """Parse the JSON object in a model reply.

    Accepts a bare object, a ```json fenced block, or an object embedded in
    surrounding prose. Raises ValueError when nothing parses.
    """
    if not text:
        raise ValueError('empty model response')
    m = re.search(r"```(?:json)?\s*(\{[\s\S]*\})\s*```", text)
    if m:
        candidate = m.group(1)
    else:
        m = re.search(r"\{[\s\S]*\}", text)
        candidate = m.group(0) if m else text
    data = json.loads(candidate)
    if not isinstance(data, dict):
        raise ValueError('model response is not a JSON object')
    return data


def generate_json(prompt, model: Optional[str] = None) -> Dict[str, Any]:
    return extract_json(generate_text(prompt, model=model))


def generate_embedding(text: str) -> Optional[List[float]]:
    """Embed `text` (truncated to the embedding model's safe size).

    Returns None when Gemini is not configured.
    """
    if not is_configured():
        current_app.logger.warning('GEMINI_API_KEY not set; storing interview without embedding')
        return None
    model = current_app.config.get('GEMINI_EMBED_MODEL', 'text-embedding-004')
    dim = current_app.config.get('EMBEDDING_DIM', 768)
    client = _client()
    truncated = (text or '')[:EMBED_CHAR_LIMIT]
    resp = _with_retry('embed', lambda: client.models.embed_content(
        model=model,
        contents=truncated,
        config=types.EmbedContentConfig(output_dimensionality=dim),
    ))
    return list(resp.embeddings[0].values)


def transcribe_audio(audio_bytes: bytes, mime_type: str = 'audio/webm') -> str:
    model = current_app.config.get('GEMINI_TRANSCRIBE_MODEL', 'gemini-2.0-flash')
    client = _client()
    contents = [
        types.Part.from_bytes(data=audio_bytes, mime_type=mime_type or 'audio/webm'),
        TRANSCRIBE_PROMPT,
    ]
    resp = _with_retry('transcribe', lambda: client.models.generate_content(model=model, contents=contents))
    return (resp.text or '').strip()
