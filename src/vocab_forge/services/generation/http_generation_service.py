"""HTTP Generation Service - delegates generation to the backend's /ai routes."""

import logging
from typing import Any, Dict, Optional

import httpx

from vocab_forge.core import GenerationError
from vocab_forge.services.generation.generation_service import (
    GeneratedContent,
    GenerationResult,
    GenerationService,
    MediaResult,
)

logger = logging.getLogger(__name__)


class HttpGenerationService(GenerationService):
    """
    Generation service backed by the persistence server.

    The server holds the model credentials and proxies to the generator, so
    clients never need an API key of their own.
    """

    MODEL_LABEL = "backend"

    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def generate(self, term: str, language_name: str) -> GenerationResult:
        try:
            data = self._post("/ai/generate/vocab", {"term": term, "lang": language_name})
            content = GeneratedContent.from_payload(data)
        except GenerationError as e:
            logger.warning("Backend vocab generation failed for %r: %s", term, e)
            return GenerationResult(content=None, model=self.MODEL_LABEL, error=str(e))
        return GenerationResult(content=content, model=self.MODEL_LABEL)

    def generate_image(self, term: str, prompt: Optional[str] = None) -> MediaResult:
        body: Dict[str, Any] = {"term": term}
        if prompt:
            body["prompt"] = prompt
        return self._media("/ai/generate/image", body, "imageUrl")

    def generate_audio(self, text: str, voice: str = "Kore", style: str = "Natural") -> MediaResult:
        return self._media(
            "/ai/generate/audio", {"text": text, "voice": voice, "style": style}, "audioUrl"
        )

    def close(self) -> None:
        self._client.close()

    def _media(self, path: str, body: Dict[str, Any], key: str) -> MediaResult:
        try:
            data = self._post(path, body)
            uri = data.get(key) if isinstance(data, dict) else None
            if not uri:
                raise GenerationError(f"Backend response has no '{key}'")
        except GenerationError as e:
            logger.warning("Backend media generation at %s failed: %s", path, e)
            return MediaResult(data_uri=None, model=self.MODEL_LABEL, error=str(e))
        return MediaResult(data_uri=uri, model=self.MODEL_LABEL)

    def _post(self, path: str, body: Dict[str, Any]) -> Any:
        try:
            response = self._client.post(path, json=body)
        except httpx.HTTPError as e:
            raise GenerationError(f"Request to {path} failed: {e}") from e
        if response.status_code >= 400:
            raise GenerationError(f"{path} returned HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise GenerationError(f"{path} returned invalid JSON") from e
