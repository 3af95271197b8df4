"""Generation services - abstract interface plus Gemini and backend implementations."""

from vocab_forge.services.generation.generation_service import (
    GeneratedContent,
    GenerationResult,
    GenerationService,
    MediaResult,
)
from vocab_forge.services.generation.gemini_generation_service import GeminiGenerationService
from vocab_forge.services.generation.http_generation_service import HttpGenerationService

__all__ = [
    "GeneratedContent",
    "GenerationResult",
    "GenerationService",
    "MediaResult",
    "GeminiGenerationService",
    "HttpGenerationService",
]
