from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import uuid4

from avboq.core.config import Settings
from avboq.models.boq_models import CatalogItem
from avboq.models.boq_models import LineItem
from avboq.models.boq_models import ProductDetails
from avboq.models.boq_models import RequirementAnswers
from avboq.models.boq_models import ValidationReport
from avboq.services import normalizer
from avboq.services import prompt_builder
from avboq.services.catalog import serialize_catalog
from avboq.services.llm import GeminiGateway
from avboq.services.llm import JSONParsingError
from avboq.services.llm import LLMError
from avboq.services.schemas import QUOTE_SCHEMA
from avboq.services.schemas import VALIDATION_SCHEMA

logger = logging.getLogger(__name__)


class QuoteService:
    """The public operations: one model call each, no state kept between calls.

    The gateway and catalog are built once per process and handed in here.
    """

    def __init__(self, gateway: GeminiGateway, catalog: Sequence[CatalogItem], config: Settings):
        self.gateway = gateway
        self.config = config
        self.catalog_json = serialize_catalog(catalog)

    def _catalog_part(self) -> str:
        return f"Custom Product Database: {self.catalog_json}"

    async def generate_quote(self, answers: RequirementAnswers, request_id: str | None = None) -> list[LineItem]:
        """Generates a bill of quantities for the questionnaire answers."""
        request_id = request_id or str(uuid4())
        logger.info("[%s] Generating quote", request_id)
        try:
            raw = await self.gateway.generate_json(
                model=self.config.text_model_id,
                parts=[prompt_builder.build_quote_prompt(answers), self._catalog_part()],
                schema=QUOTE_SCHEMA,
                temperature=self.config.quote_temperature,
                request_id=request_id,
            )
            quote = normalizer.parse_quote(raw, strict_categories=self.config.strict_categories)
        except (LLMError, JSONParsingError) as e:
            logger.error("[%s] Error generating quote: %s", request_id, str(e))
            raise
        logger.info("[%s] Quote generated with %d line items", request_id, len(quote))
        return quote

    async def refine_quote(
        self, current_quote: Sequence[LineItem], instruction: str, request_id: str | None = None
    ) -> list[LineItem]:
        """Applies a free-text change request to an existing quote and returns the full updated quote."""
        request_id = request_id or str(uuid4())
        logger.info("[%s] Refining quote of %d items", request_id, len(current_quote))
        try:
            raw = await self.gateway.generate_json(
                model=self.config.text_model_id,
                parts=[prompt_builder.build_refine_prompt(current_quote, instruction), self._catalog_part()],
                schema=QUOTE_SCHEMA,
                request_id=request_id,
            )
            quote = normalizer.parse_quote(raw, strict_categories=self.config.strict_categories)
        except (LLMError, JSONParsingError) as e:
            logger.error("[%s] Error refining quote: %s", request_id, str(e))
            raise
        logger.info("[%s] Quote refined, now %d line items", request_id, len(quote))
        return quote

    async def validate_quote(
        self, quote: Sequence[LineItem], requirements: str, request_id: str | None = None
    ) -> ValidationReport:
        """Audits the quote against the requirements. Never raises; a failed audit yields the fallback report."""
        request_id = request_id or str(uuid4())
        logger.info("[%s] Validating quote of %d items", request_id, len(quote))
        try:
            raw = await self.gateway.generate_json(
                model=self.config.text_model_id,
                parts=[prompt_builder.build_validation_prompt(quote, requirements)],
                schema=VALIDATION_SCHEMA,
                request_id=request_id,
            )
            return normalizer.parse_validation_report(raw)
        except Exception as e:
            logger.error("[%s] Error validating quote: %s", request_id, str(e), exc_info=True)
            return normalizer.validation_fallback()

    async def render_visualization(
        self, answers: RequirementAnswers, quote: Sequence[LineItem], request_id: str | None = None
    ) -> str:
        """Generates a photorealistic room render and returns it as a data URI."""
        request_id = request_id or str(uuid4())
        logger.info("[%s] Generating room visualization", request_id)
        try:
            images = await self.gateway.generate_images(
                model=self.config.image_model_id,
                prompt=prompt_builder.build_visualization_prompt(answers, quote),
                request_id=request_id,
            )
            return normalizer.to_data_uri(images, self.config.image_mime_type, "No image was generated by the API.")
        except LLMError as e:
            logger.error("[%s] Error generating room visualization: %s", request_id, str(e))
            raise

    async def render_schematic(
        self, answers: RequirementAnswers, quote: Sequence[LineItem], request_id: str | None = None
    ) -> str:
        """Generates a functional block diagram and returns it as a data URI."""
        request_id = request_id or str(uuid4())
        logger.info("[%s] Generating room schematic", request_id)
        try:
            images = await self.gateway.generate_images(
                model=self.config.image_model_id,
                prompt=prompt_builder.build_schematic_prompt(answers, quote),
                request_id=request_id,
            )
            return normalizer.to_data_uri(
                images, self.config.image_mime_type, "No image was generated by the API for the schematic."
            )
        except LLMError as e:
            logger.error("[%s] Error generating room schematic: %s", request_id, str(e))
            raise

    async def fetch_product_details(self, product_name: str, request_id: str | None = None) -> ProductDetails:
        """Looks up a product description, image URL and citations using search grounding."""
        request_id = request_id or str(uuid4())
        logger.info("[%s] Fetching product details for %r", request_id, product_name)
        try:
            response = await self.gateway.generate_grounded_text(
                model=self.config.lookup_model_id,
                prompt=prompt_builder.build_product_details_prompt(product_name),
                request_id=request_id,
            )
            return normalizer.parse_product_details(response)
        except LLMError as e:
            logger.error('[%s] Error fetching product details for "%s": %s', request_id, product_name, str(e))
            raise LLMError(f'Failed to fetch product details for "{product_name}".') from e
