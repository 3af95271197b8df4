"""Gemini Generation Service - vocabulary data, images and speech via Google Gemini."""

import base64
import json
import logging
import time
from typing import Any, Callable, Optional

import google.genai as genai
from google.genai import types

from vocab_forge.core import GenerationError
from vocab_forge.services.generation.generation_service import (
    GeneratedContent,
    GenerationResult,
    GenerationService,
    MediaResult,
)

logger = logging.getLogger(__name__)

# Schema keys use underscores for the Chinese variants; mapped back on parse.
SCHEMA_LANGUAGE_KEYS = [
    "en", "ar", "de", "es", "fr", "in", "it", "ja", "ko",
    "pl", "pt", "ru", "th", "tr", "vi", "zh_cn", "zh_tw",
]


def _language_object(required: bool) -> types.Schema:
    return types.Schema(
        type=types.Type.OBJECT,
        properties={key: types.Schema(type=types.Type.STRING) for key in SCHEMA_LANGUAGE_KEYS},
        required=list(SCHEMA_LANGUAGE_KEYS) if required else None,
    )


def _string() -> types.Schema:
    return types.Schema(type=types.Type.STRING)


VOCAB_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "script": _string(),
        "phonetic": _string(),
        "variant": _string(),
        "partOfSpeech": _string(),
        "translations": _language_object(required=True),
        "exampleSentence": _string(),
        "exampleSentenceStructure": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "word": _string(),
                    "script": _string(),
                    "variant": _string(),
                    "translation": _string(),
                    # optional per token; rare words would otherwise fail validation
                    "translations": _language_object(required=False),
                },
                required=["word", "script", "translation"],
            ),
        ),
        "exampleScript": _string(),
        "exampleTranslations": _language_object(required=True),
    },
    required=[
        "script", "phonetic", "variant", "partOfSpeech", "translations",
        "exampleSentence", "exampleSentenceStructure", "exampleScript", "exampleTranslations",
    ],
)


class GeminiGenerationService(GenerationService):
    """
    Generation service calling the Gemini API directly.

    Rate-limit errors are retried with exponential backoff; every other
    failure is reported in the result without retry.
    """

    TEXT_MODEL = "gemini-2.5-flash"
    IMAGE_MODEL = "gemini-2.5-flash-image"
    AUDIO_MODEL = "gemini-2.5-flash-preview-tts"

    VOCAB_PROMPT = """Analyze the vocabulary term "{term}" which is a {language} word.
Provide the following details. ALL FIELDS ARE REQUIRED.

1. script:
   - If Japanese: Kanji with Furigana or Kana.
   - If Chinese: Pinyin, strictly lowercase, space-separated, with tone marks (e.g. "dé guó").
   - If Korean: Hangul or Romanization.
   - Otherwise: "N/A" or IPA.
2. variant:
   - If Chinese: the Traditional Chinese character(s).
   - If Japanese: the Kanji if the term is Kana, or vice versa if useful.
   - Otherwise: empty string or alternate spelling.
3. phonetic: IPA or standard romanization.
4. partOfSpeech: Grammatical category.
5. translations: Translate "{term}" into: en, ar, de, es, fr, in, it, ja, ko, pl, pt, ru, th, tr, vi, zh-rCN, zh-rTW.
6. exampleSentence: A natural example sentence in {language}.
7. exampleSentenceStructure: Break the example sentence into tokens; punctuation is a separate token.
   For each token give word, script (reading; strict lowercase spaced Pinyin for Chinese),
   variant (Traditional Chinese if applicable), translation (short English), and
   translations (the token in all requested languages).
8. exampleScript: Full reading of the sentence (strict lowercase spaced Pinyin for Chinese).
9. exampleTranslations: Translate the sentence into all requested languages.
"""

    IMAGE_PROMPT = """Create a simple, modern, flat vector illustration for the vocabulary word: "{term}".

Design Style:
- Borderless flat design: solid color shapes only, no outlines, no strokes.
- Color palette: fresh, elegant, light tones. Avoid dark, muddy or neon colors.
- Composition: close-up, the subject fills most of the frame, centered and balanced.
- Clear semantics: the image must instantly depict the meaning of the word.
- Background: pure white.
- Strict restrictions: no text, letters or characters; no gradients, shadows or complex details.
"""

    def __init__(self, api_key: str, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        if not api_key:
            raise ValueError("Gemini API key is required")
        self._api_key = api_key
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def generate(self, term: str, language_name: str) -> GenerationResult:
        prompt = self.VOCAB_PROMPT.format(term=term, language=language_name)

        def call(client: genai.Client) -> Any:
            return client.models.generate_content(
                model=self.TEXT_MODEL,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=VOCAB_RESPONSE_SCHEMA,
                ),
            )

        try:
            response = self._call_with_retry("vocab", call)
            if not response.text:
                raise GenerationError("Empty response from API")
            content = GeneratedContent.from_payload(json.loads(response.text))
        except json.JSONDecodeError as e:
            return GenerationResult(content=None, model=self.TEXT_MODEL, error=f"Malformed JSON from API: {e}")
        except GenerationError as e:
            return GenerationResult(content=None, model=self.TEXT_MODEL, error=str(e))

        logger.info("Generated vocabulary data for %r (%s)", term, language_name)
        return GenerationResult(content=content, model=self.TEXT_MODEL)

    def generate_image(self, term: str, prompt: Optional[str] = None) -> MediaResult:
        prompt_text = prompt or self.IMAGE_PROMPT.format(term=term)

        def call(client: genai.Client) -> Any:
            return client.models.generate_content(
                model=self.IMAGE_MODEL,
                contents=prompt_text,
            )

        try:
            response = self._call_with_retry("image", call)
            for part in self._parts(response):
                inline = getattr(part, "inline_data", None)
                if inline is not None and inline.data:
                    return MediaResult(
                        data_uri=self._data_uri(inline.mime_type or "image/png", inline.data),
                        model=self.IMAGE_MODEL,
                    )
            raise GenerationError("No image data found in response")
        except GenerationError as e:
            return MediaResult(data_uri=None, model=self.IMAGE_MODEL, error=str(e))

    def generate_audio(self, text: str, voice: str = "Kore", style: str = "Natural") -> MediaResult:
        prompt_text = text if not style or style == "Natural" else f"Say {style}: {text}"

        def call(client: genai.Client) -> Any:
            return client.models.generate_content(
                model=self.AUDIO_MODEL,
                contents=prompt_text,
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice)
                        )
                    ),
                ),
            )

        try:
            response = self._call_with_retry("audio", call)
            inline = next(
                (
                    part.inline_data
                    for part in self._parts(response)
                    if getattr(part, "inline_data", None) is not None and part.inline_data.data
                ),
                None,
            )
            if inline is None:
                candidates = getattr(response, "candidates", None) or []
                reason = getattr(candidates[0], "finish_reason", None) if candidates else None
                suffix = f" (Reason: {reason})" if reason else ""
                raise GenerationError(f"No audio data generated{suffix}.")
            return MediaResult(
                data_uri=self._data_uri(inline.mime_type or "audio/mp3", inline.data),
                model=self.AUDIO_MODEL,
            )
        except GenerationError as e:
            return MediaResult(data_uri=None, model=self.AUDIO_MODEL, error=str(e))

    # --- helpers ---

    def _call_with_retry(self, label: str, call: Callable[[genai.Client], Any]) -> Any:
        """Run ``call`` with a fresh client, retrying rate limits with backoff.

        Raises:
            GenerationError: With a user-facing message once retries are exhausted
                or the error is not retryable.
        """
        retry_delay = self._retry_delay
        attempt = 0
        while True:
            attempt += 1
            try:
                client = genai.Client(api_key=self._api_key)
                return call(client)
            except GenerationError:
                raise
            except Exception as e:
                error_msg = str(e).lower()
                is_rate_limit = (
                    "429" in error_msg
                    or "resource_exhausted" in error_msg
                    or "quota" in error_msg
                    or "rate_limit" in error_msg
                )
                logger.warning(
                    "Gemini %s request failed (attempt %d/%d): %s: %s",
                    label, attempt, self._max_retries, type(e).__name__, e,
                )
                if is_rate_limit and attempt < self._max_retries:
                    logger.info("Rate limit detected. Retrying in %s seconds", retry_delay)
                    time.sleep(retry_delay)
                    retry_delay *= 2
                    continue

                if "api_key" in error_msg or "authentication" in error_msg or "invalid" in error_msg:
                    raise GenerationError(f"Invalid API key or request: {e}") from e
                if is_rate_limit:
                    raise GenerationError("API quota exceeded. Please try again later.") from e
                if "deadline" in error_msg or "timeout" in error_msg:
                    raise GenerationError("Request timed out. Please check your connection.") from e
                raise GenerationError(f"Generation failed: {e}") from e

    @staticmethod
    def _parts(response: Any) -> list:
        candidates = getattr(response, "candidates", None) or []
        if not candidates or candidates[0].content is None:
            return []
        return list(candidates[0].content.parts or [])

    @staticmethod
    def _data_uri(mime_type: str, data: Any) -> str:
        if isinstance(data, str):
            encoded = data
        else:
            encoded = base64.b64encode(data).decode("ascii")
        return f"data:{mime_type};base64,{encoded}"
