import logging
from uuid import uuid4

from async_lru import alru_cache
from fastapi import APIRouter
from fastapi import Depends
from pydantic import Field as PydanticField

from avboq.core.config import settings
from avboq.core.security import verify_api_key
from avboq.models.boq_models import CamelModel
from avboq.models.boq_models import LineItem
from avboq.models.boq_models import ProductDetails
from avboq.models.boq_models import RequirementAnswers
from avboq.models.boq_models import ValidationReport
from avboq.services.catalog import load_catalog
from avboq.services.llm import get_gateway
from avboq.services.quote_service import QuoteService

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", dependencies=[Depends(verify_api_key)])


@alru_cache(maxsize=1)
async def _build_quote_service() -> QuoteService:
    catalog = await load_catalog(str(settings.catalog_path))
    return QuoteService(get_gateway(), catalog, settings)


async def get_quote_service() -> QuoteService:
    """Dependency returning the process-wide QuoteService."""
    return await _build_quote_service()


class RefinePayload(CamelModel):
    current_quote: list[LineItem]
    instruction: str = PydanticField(..., min_length=1, description="Free-text change request.")


class ValidatePayload(CamelModel):
    quote: list[LineItem]
    requirements: str = PydanticField(default="", description="Requirements summary to audit against.")


class RenderPayload(CamelModel):
    answers: RequirementAnswers = PydanticField(default_factory=RequirementAnswers)
    quote: list[LineItem]


class ProductLookupPayload(CamelModel):
    product_name: str = PydanticField(..., min_length=1)


class RenderResponse(CamelModel):
    data_uri: str


@router.post("/quotes", response_model=list[LineItem], tags=["Quotes"])
async def generate_quote(
    answers: RequirementAnswers,
    service: QuoteService = Depends(get_quote_service),
) -> list[LineItem]:
    """Generates a bill of quantities from the questionnaire answers.

    Requires a valid API key via the 'X-API-Key' header.
    """
    request_id = str(uuid4())
    logger.info("[%s] /quotes called", request_id)
    return await service.generate_quote(answers, request_id=request_id)


@router.post("/quotes/refine", response_model=list[LineItem], tags=["Quotes"])
async def refine_quote(
    payload: RefinePayload,
    service: QuoteService = Depends(get_quote_service),
) -> list[LineItem]:
    request_id = str(uuid4())
    logger.info("[%s] /quotes/refine called with %d items", request_id, len(payload.current_quote))
    return await service.refine_quote(payload.current_quote, payload.instruction, request_id=request_id)


@router.post("/quotes/validate", response_model=ValidationReport, tags=["Quotes"])
async def validate_quote(
    payload: ValidatePayload,
    service: QuoteService = Depends(get_quote_service),
) -> ValidationReport:
    """Audits a quote. Always answers 200; a failed audit comes back as an invalid report."""
    request_id = str(uuid4())
    logger.info("[%s] /quotes/validate called with %d items", request_id, len(payload.quote))
    return await service.validate_quote(payload.quote, payload.requirements, request_id=request_id)


@router.post("/renders/visualization", response_model=RenderResponse, tags=["Renders"])
async def render_visualization(
    payload: RenderPayload,
    service: QuoteService = Depends(get_quote_service),
) -> RenderResponse:
    request_id = str(uuid4())
    logger.info("[%s] /renders/visualization called", request_id)
    data_uri = await service.render_visualization(payload.answers, payload.quote, request_id=request_id)
    return RenderResponse(data_uri=data_uri)


@router.post("/renders/schematic", response_model=RenderResponse, tags=["Renders"])
async def render_schematic(
    payload: RenderPayload,
    service: QuoteService = Depends(get_quote_service),
) -> RenderResponse:
    request_id = str(uuid4())
    logger.info("[%s] /renders/schematic called", request_id)
    data_uri = await service.render_schematic(payload.answers, payload.quote, request_id=request_id)
    return RenderResponse(data_uri=data_uri)


@router.post("/products/details", response_model=ProductDetails, tags=["Products"])
async def fetch_product_details(
    payload: ProductLookupPayload,
    service: QuoteService = Depends(get_quote_service),
) -> ProductDetails:
    request_id = str(uuid4())
    logger.info("[%s] /products/details called for %r", request_id, payload.product_name)
    return await service.fetch_product_details(payload.product_name, request_id=request_id)
