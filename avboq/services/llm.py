import json
import logging
import re
from functools import lru_cache
from typing import Any
from uuid import uuid4

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from avboq.core.config import Settings
from avboq.core.config import settings
from avboq.core.exceptions import ConfigurationError

# Configure module logger
logger = logging.getLogger(__name__)


# Custom exceptions for better error handling
class LLMError(Exception):
    """Raised when the model call fails"""


class ImageGenerationError(LLMError):
    """Raised when an image call returns no images"""


class JSONParsingError(Exception):
    """Raised when JSON parsing fails"""


class ResponseValidationError(JSONParsingError):
    """Raised when parsed JSON does not match the expected shape"""


# ---------------------------------------------------------------
# Gemini gateway: one network round-trip per call, no retries
# ---------------------------------------------------------------
class GeminiGateway:
    """Thin wrapper over the async Gemini client.

    Every method issues exactly one request. SDK and transport errors are
    logged and re-raised as LLMError with the original exception as cause.
    """

    def __init__(self, client: genai.Client, config: Settings):
        self.client = client
        self.config = config

    async def generate_json(
        self,
        *,
        model: str,
        parts: list[str],
        schema: types.Schema,
        temperature: float | None = None,
        request_id: str | None = None,
    ) -> str:
        """Requests structured JSON output constrained by ``schema`` and returns the raw text."""
        request_id = request_id or str(uuid4())
        logger.info("[%s] Making structured Gemini call with model: %s", request_id, model)

        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
            temperature=temperature,
        )
        contents = [types.Content(role="user", parts=[types.Part.from_text(text=part) for part in parts])]
        try:
            rsp = await self.client.aio.models.generate_content(model=model, contents=contents, config=config)
        except genai_errors.APIError as e:
            logger.error("[%s] Gemini API error: %s", request_id, str(e), exc_info=True)
            raise LLMError(f"Gemini API error: {str(e)}") from e
        except Exception as e:
            logger.exception("[%s] Unexpected error in Gemini call", request_id)
            raise LLMError(f"Unexpected error in Gemini call: {str(e)}") from e

        text = rsp.text if rsp is not None else None
        if not text:
            logger.error("[%s] Empty text in Gemini response: %s", request_id, str(rsp)[:500])
            raise LLMError("Empty response from Gemini API.")

        logger.debug("[%s] Gemini response received, length: %d chars", request_id, len(text))
        return text.strip()

    async def generate_images(self, *, model: str, prompt: str, request_id: str | None = None) -> list[bytes]:
        """Requests image generation and returns the raw bytes of every image returned."""
        request_id = request_id or str(uuid4())
        logger.info("[%s] Making image generation call with model: %s", request_id, model)

        config = types.GenerateImagesConfig(
            number_of_images=self.config.number_of_images,
            output_mime_type=self.config.image_mime_type,
            aspect_ratio=self.config.image_aspect_ratio,
        )
        try:
            rsp = await self.client.aio.models.generate_images(model=model, prompt=prompt, config=config)
        except genai_errors.APIError as e:
            logger.error("[%s] Gemini image API error: %s", request_id, str(e), exc_info=True)
            raise LLMError(f"Gemini API error: {str(e)}") from e
        except Exception as e:
            logger.exception("[%s] Unexpected error in image generation call", request_id)
            raise LLMError(f"Unexpected error in image generation call: {str(e)}") from e

        generated = (rsp.generated_images if rsp is not None else None) or []
        images = [img.image.image_bytes for img in generated if img.image is not None and img.image.image_bytes]
        logger.debug("[%s] Image generation returned %d image(s)", request_id, len(images))
        return images

    async def generate_grounded_text(
        self, *, model: str, prompt: str, request_id: str | None = None
    ) -> types.GenerateContentResponse:
        """Free-text call with Google Search grounding enabled; returns the full response for citation extraction."""
        request_id = request_id or str(uuid4())
        logger.info("[%s] Making search-grounded Gemini call with model: %s", request_id, model)

        config = types.GenerateContentConfig(tools=[types.Tool(google_search=types.GoogleSearch())])
        try:
            rsp = await self.client.aio.models.generate_content(model=model, contents=prompt, config=config)
        except genai_errors.APIError as e:
            logger.error("[%s] Gemini API error: %s", request_id, str(e), exc_info=True)
            raise LLMError(f"Gemini API error: {str(e)}") from e
        except Exception as e:
            logger.exception("[%s] Unexpected error in grounded Gemini call", request_id)
            raise LLMError(f"Unexpected error in grounded Gemini call: {str(e)}") from e

        if rsp is None or not rsp.text:
            logger.error("[%s] Empty text in grounded Gemini response", request_id)
            raise LLMError("Empty response from Gemini API.")
        return rsp


@lru_cache(maxsize=1)
def get_gateway() -> GeminiGateway:
    """Builds the process-wide gateway on first use."""
    if not settings.gemini_api_key:
        logger.error("GEMINI_API_KEY is missing. Set GEMINI_API_KEY (or API_KEY) in the environment.")
        raise ConfigurationError("Gemini API key is not configured.")
    return GeminiGateway(genai.Client(api_key=settings.gemini_api_key), settings)


# ---------------------------------------------------------------
# JSON extractor helper
# ---------------------------------------------------------------
def extract_json(text: str) -> Any:
    """Parses JSON from a model response, handling markdown fences and extraneous text."""
    request_id = str(uuid4())
    logger.debug("[%s] Attempting to parse JSON response, length: %d", request_id, len(text))

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("[%s] Initial JSON parse failed, attempting extraction strategies...", request_id)

    # Strategy 1: Markdown Code Fence Extraction
    match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text, re.DOTALL)
    if match:
        try:
            result = json.loads(match.group(1))
            logger.info("[%s] Successfully parsed JSON from markdown code fence.", request_id)
            return result
        except json.JSONDecodeError:
            logger.warning("[%s] Failed to parse JSON from fenced block, trying next strategy...", request_id)

    # Strategy 2: raw_decode from the first object/array marker
    decoder = json.JSONDecoder()
    obj_start = text.find("{")
    arr_start = text.find("[")
    if obj_start == -1 and arr_start == -1:
        logger.error("[%s] No JSON object or array marker found in response", request_id)
        raise JSONParsingError("No JSON object or array marker found in response")
    start_pos = min(pos for pos in (obj_start, arr_start) if pos != -1)
    try:
        obj, _ = decoder.raw_decode(text, start_pos)
        logger.info("[%s] Successfully parsed JSON using raw_decode.", request_id)
        return obj
    except json.JSONDecodeError as e:
        logger.error("[%s] Failed to parse JSON using raw_decode: %s", request_id, str(e))
    raise JSONParsingError("All strategies to parse JSON from model response failed.")
