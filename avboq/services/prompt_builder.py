"""Builds the natural-language instructions sent to the model.

All functions here are pure string formatting over the typed request models;
the templates live in ``prompt_templates/``.
"""

import json
import logging
import pathlib
from collections.abc import Iterable
from collections.abc import Sequence
from typing import Any

import jinja2

from avboq.core.exceptions import ConfigurationError
from avboq.models.boq_models import ALWAYS_INCLUDED_CATEGORY
from avboq.models.boq_models import DEFAULT_REQUIRED_SYSTEMS
from avboq.models.boq_models import SYSTEM_CATEGORY_MAP
from avboq.models.boq_models import LineItem
from avboq.models.boq_models import RequirementAnswers

logger = logging.getLogger(__name__)

PROMPT_DIR = pathlib.Path(__file__).parent / "prompt_templates"
env = jinja2.Environment(loader=jinja2.FileSystemLoader(PROMPT_DIR))

IMAGE_URL_MARKER = "IMAGE_URL:"

DEFAULT_ROOM_TYPE = "meeting room"
DEFAULT_SEATING = "conference table"

# Categories shown in the photorealistic render
VISIBLE_CATEGORIES = frozenset(
    {
        "Display",
        "Video Conferencing & Cameras",
        "Audio - Speakers",
        "Control System & Environmental",
    }
)

# Categories left off the block diagram
PASSIVE_CATEGORIES = frozenset(
    {
        "Cabling & Infrastructure",
        "Mounts & Racks",
        "Acoustic Treatment",
        "Accessories & Services",
    }
)


def _render(template_name: str, **context: Any) -> str:
    try:
        template = env.get_template(template_name)
    except jinja2.TemplateNotFound:
        logger.error("Template not found: %s", template_name)
        raise ConfigurationError(f"Internal configuration error: Template '{template_name}' not found.") from None
    return template.render(**context).strip()


def allowed_categories(required_systems: Sequence[str] | None) -> list[str]:
    """Maps requested systems to their categories, always ending with the accessories category."""
    # An explicit empty list narrows the scope to accessories only
    systems = required_systems if required_systems is not None else DEFAULT_REQUIRED_SYSTEMS
    categories = [category for system in systems for category in SYSTEM_CATEGORY_MAP.get(system, ())]
    categories.append(ALWAYS_INCLUDED_CATEGORY)
    return categories


def format_requirements(answers: RequirementAnswers) -> str:
    """Renders the answers as ``key: value`` pairs joined by ``"; "``, skipping empty values."""
    pairs = []
    for key, value in answers.model_dump(by_alias=True).items():
        if isinstance(value, list):
            if value:
                pairs.append(f"{key}: {', '.join(str(v) for v in value)}")
        elif value:
            pairs.append(f"{key}: {value}")
    return "; ".join(pairs)


def quote_to_json(quote: Iterable[LineItem]) -> str:
    return json.dumps([item.model_dump(by_alias=True) for item in quote], indent=2, ensure_ascii=False)


def build_quote_prompt(answers: RequirementAnswers) -> str:
    return _render(
        "generate_quote.jinja2",
        requirements=format_requirements(answers),
        allowed_categories=allowed_categories(answers.required_systems),
    )


def build_refine_prompt(current_quote: Sequence[LineItem], instruction: str) -> str:
    return _render(
        "refine_quote.jinja2",
        current_quote=quote_to_json(current_quote),
        instruction=instruction,
    )


def build_validation_prompt(quote: Sequence[LineItem], requirements: str) -> str:
    return _render(
        "validate_quote.jinja2",
        current_quote=quote_to_json(quote),
        requirements=requirements,
    )


def _format_quantity(quantity: float) -> str:
    return str(int(quantity)) if float(quantity).is_integer() else str(quantity)


def build_visualization_prompt(answers: RequirementAnswers, quote: Sequence[LineItem]) -> str:
    """Prompt for a photorealistic room render featuring the visible equipment only."""
    manifest = "\n".join(
        f"- {_format_quantity(item.quantity)}x {item.item_description} ({item.brand})"
        for item in quote
        if item.category in VISIBLE_CATEGORIES
    )
    return _render(
        "room_visualization.jinja2",
        room_type=answers.room_type or DEFAULT_ROOM_TYPE,
        seating_arrangement=answers.seating_arrangement or DEFAULT_SEATING,
        equipment_manifest=manifest,
    )


def build_schematic_prompt(answers: RequirementAnswers, quote: Sequence[LineItem]) -> str:
    """Prompt for a black-and-white functional block diagram of the active equipment."""
    manifest = "\n".join(
        f"- {_format_quantity(item.quantity)}x {item.brand} {item.model}"
        for item in quote
        if item.category not in PASSIVE_CATEGORIES
    )
    return _render(
        "room_schematic.jinja2",
        room_type=answers.room_type or DEFAULT_ROOM_TYPE,
        equipment_manifest=manifest,
    )


def build_product_details_prompt(product_name: str) -> str:
    return _render(
        "product_details.jinja2",
        product_name=product_name,
        image_url_marker=IMAGE_URL_MARKER,
    )
