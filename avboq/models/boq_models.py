from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic.alias_generators import to_camel

SystemKey = Literal[
    "display",
    "video_conferencing",
    "audio",
    "connectivity_control",
    "infrastructure",
    "acoustics",
]

# Display and sort order of line-item categories
CATEGORY_ORDER: tuple[str, ...] = (
    "Display",
    "Video Conferencing & Cameras",
    "Video Distribution & Switching",
    "Audio - Microphones",
    "Audio - DSP & Amplification",
    "Audio - Speakers",
    "Control System & Environmental",
    "Acoustic Treatment",
    "Cabling & Infrastructure",
    "Mounts & Racks",
    "Accessories & Services",
)

SYSTEM_CATEGORY_MAP: dict[str, tuple[str, ...]] = {
    "display": ("Display",),
    "video_conferencing": ("Video Conferencing & Cameras",),
    "audio": ("Audio - Microphones", "Audio - DSP & Amplification", "Audio - Speakers"),
    "connectivity_control": ("Video Distribution & Switching", "Control System & Environmental"),
    "infrastructure": ("Cabling & Infrastructure", "Mounts & Racks"),
    "acoustics": ("Acoustic Treatment",),
}

ALWAYS_INCLUDED_CATEGORY = "Accessories & Services"

DEFAULT_REQUIRED_SYSTEMS: tuple[str, ...] = tuple(SYSTEM_CATEGORY_MAP)


class CamelModel(BaseModel):
    """Base model exchanging camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CatalogItem(CamelModel):
    """A product record from the static catalog. A price of 0 means no price is known."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    brand: str
    model: str
    description: str
    category: str
    price: float = 0.0

    @field_validator("price", mode="before")
    @classmethod
    def null_price_is_unknown(cls, v: float | None) -> float | None:
        # Records exported without a price carry null
        return 0.0 if v is None else v


class RequirementAnswers(CamelModel):
    """Answers collected from the room-requirements questionnaire.

    Every field is optional; empty values are left out of the prompt.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    room_type: str | None = None
    room_dimensions: str | None = None
    ceiling_height: str | None = None
    seating_arrangement: str | None = None
    capacity: int | None = None
    table_length: str | None = None
    rack_distance: str | None = None
    required_systems: list[SystemKey] | None = None
    display_type: str | None = None
    display_size: str | None = None
    video_conferencing_platform: str | None = None
    audio_requirements: list[str] | None = None
    control_requirements: list[str] | None = None
    plenum_requirement: str | None = None
    wall_reinforcement: str | None = None
    budget: str | None = None
    additional_notes: str | None = None


class LineItem(CamelModel):
    """A single priced row of a bill of quantities."""

    category: str
    item_description: str
    brand: str
    model: str
    quantity: float
    unit_price: float
    total_price: float
    source: Literal["database", "web"]
    price_source: Literal["database", "estimated"]


class ValidationReport(CamelModel):
    is_valid: bool
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    missing_components: list[str] = Field(default_factory=list)


class GroundingSource(CamelModel):
    """A web citation the model reports having used."""

    uri: str
    title: str = ""


class ProductDetails(CamelModel):
    description: str
    image_url: str = ""
    sources: list[GroundingSource] = Field(default_factory=list)
