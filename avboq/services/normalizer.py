"""Turns raw model output into domain objects.

The model's arithmetic and ordering are not trusted: quotes are re-sorted by
the fixed category precedence and every ``totalPrice`` is recomputed locally.
"""

import base64
import logging
import re
from collections.abc import Iterable
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from avboq.models.boq_models import CATEGORY_ORDER
from avboq.models.boq_models import GroundingSource
from avboq.models.boq_models import LineItem
from avboq.models.boq_models import ProductDetails
from avboq.models.boq_models import ValidationReport
from avboq.services.llm import ImageGenerationError
from avboq.services.llm import ResponseValidationError
from avboq.services.llm import extract_json
from avboq.services.prompt_builder import IMAGE_URL_MARKER

logger = logging.getLogger(__name__)

_CATEGORY_RANK = {category: idx for idx, category in enumerate(CATEGORY_ORDER)}
_IMAGE_URL_RE = re.compile(r"(?:^|\n)" + re.escape(IMAGE_URL_MARKER) + r"[ \t]*(.*)")

VALIDATION_FAILED_WARNING = "AI validation failed to run. Please check the BOQ manually."


def _format_errors(ve: ValidationError) -> str:
    parts = []
    for err in ve.errors():
        field = ".".join(str(loc) for loc in err["loc"]) or "<root>"
        if err["type"] == "literal_error":
            parts.append(f"unrecognized value {err.get('input')!r} for '{field}' ({err['msg']})")
        else:
            parts.append(f"'{field}': {err['msg']}")
    return "; ".join(parts)


def sort_by_category(items: Iterable[LineItem]) -> list[LineItem]:
    """Stable sort by category precedence; unknown categories keep their order after all known ones."""
    return sorted(items, key=lambda item: _CATEGORY_RANK.get(item.category, len(CATEGORY_ORDER)))


def recompute_totals(items: Iterable[LineItem]) -> list[LineItem]:
    return [item.model_copy(update={"total_price": item.quantity * item.unit_price}) for item in items]


def parse_quote(raw_text: str, strict_categories: bool = False) -> list[LineItem]:
    """Parses a JSON array of line items, then sorts and recomputes totals.

    Raises:
        JSONParsingError: the text is not JSON.
        ResponseValidationError: the JSON is not a list of well-formed line items.
    """
    data: Any = extract_json(raw_text)
    if not isinstance(data, list):
        logger.error("Quote response is a %s, expected a list. Data: %s", type(data).__name__, str(data)[:200])
        raise ResponseValidationError(f"Expected a JSON array of line items, got {type(data).__name__}.")

    items: list[LineItem] = []
    for idx, item_data in enumerate(data):
        try:
            item = LineItem.model_validate(item_data)
        except ValidationError as ve:
            logger.error("Validation failed for line item #%d: %s. Data: %s", idx, ve, item_data)
            raise ResponseValidationError(f"Invalid line item #{idx}: {_format_errors(ve)}") from ve
        if item.category not in _CATEGORY_RANK:
            if strict_categories:
                raise ResponseValidationError(f"Invalid line item #{idx}: unrecognized category {item.category!r}")
            logger.warning("Line item #%d has unknown category %r, it will sort last", idx, item.category)
        items.append(item)

    return recompute_totals(sort_by_category(items))


def parse_validation_report(raw_text: str) -> ValidationReport:
    data = extract_json(raw_text)
    if not isinstance(data, dict):
        raise ResponseValidationError(f"Expected a JSON object for the validation report, got {type(data).__name__}.")
    try:
        return ValidationReport.model_validate(data)
    except ValidationError as ve:
        logger.error("Validation report has an unexpected shape: %s. Data: %s", ve, data)
        raise ResponseValidationError(f"Invalid validation report: {_format_errors(ve)}") from ve


def validation_fallback() -> ValidationReport:
    """Report returned when the validation call itself could not complete."""
    return ValidationReport(
        is_valid=False,
        warnings=[VALIDATION_FAILED_WARNING],
        suggestions=[],
        missing_components=[],
    )


def to_data_uri(images: Sequence[bytes], mime_type: str, empty_message: str) -> str:
    """Wraps the first image as a base64 data URI, failing when none were generated."""
    if not images:
        raise ImageGenerationError(empty_message)
    encoded = base64.b64encode(images[0]).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def split_description_and_image(text: str) -> tuple[str, str]:
    """Splits on the ``IMAGE_URL:`` marker line into (description, image_url).

    Without a marker the whole text is the description and the URL is empty.
    """
    match = _IMAGE_URL_RE.search(text)
    if not match:
        return text.strip(), ""
    return text[: match.start()].strip(), match.group(1).strip()


def extract_grounding_sources(response: Any) -> list[GroundingSource]:
    """Collects web citations from the first candidate, skipping chunks without one."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None or not getattr(web, "uri", None):
            continue
        sources.append(GroundingSource(uri=web.uri, title=web.title or ""))
    return sources


def parse_product_details(response: Any) -> ProductDetails:
    description, image_url = split_description_and_image(response.text or "")
    return ProductDetails(
        description=description,
        image_url=image_url,
        sources=extract_grounding_sources(response),
    )
