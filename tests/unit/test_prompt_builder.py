import re

import pytest

from avboq.core.exceptions import ConfigurationError
from avboq.models.boq_models import CATEGORY_ORDER
from avboq.models.boq_models import SYSTEM_CATEGORY_MAP
from avboq.models.boq_models import RequirementAnswers
from avboq.services import prompt_builder
from avboq.services.prompt_builder import allowed_categories
from avboq.services.prompt_builder import build_product_details_prompt
from avboq.services.prompt_builder import build_quote_prompt
from avboq.services.prompt_builder import build_refine_prompt
from avboq.services.prompt_builder import build_schematic_prompt
from avboq.services.prompt_builder import build_validation_prompt
from avboq.services.prompt_builder import build_visualization_prompt
from avboq.services.prompt_builder import format_requirements


def _scope_line(prompt: str) -> str:
    match = re.search(r"ONLY generate items for categories in this list: (.*)\.", prompt)
    assert match, "scope line missing from prompt"
    return match.group(1)


def test_allowed_categories_defaults_to_every_system():
    categories = allowed_categories(None)

    assert categories == [
        "Display",
        "Video Conferencing & Cameras",
        "Audio - Microphones",
        "Audio - DSP & Amplification",
        "Audio - Speakers",
        "Video Distribution & Switching",
        "Control System & Environmental",
        "Cabling & Infrastructure",
        "Mounts & Racks",
        "Acoustic Treatment",
        "Accessories & Services",
    ]


def test_allowed_categories_always_appends_accessories():
    assert allowed_categories(["display"]) == ["Display", "Accessories & Services"]
    assert allowed_categories([]) == ["Accessories & Services"]


def test_quote_prompt_with_no_systems_lists_only_accessories():
    prompt = build_quote_prompt(RequirementAnswers(required_systems=[]))

    assert _scope_line(prompt) == "Accessories & Services"


def test_allowed_categories_skips_unknown_systems():
    assert allowed_categories(["lighting", "acoustics"]) == ["Acoustic Treatment", "Accessories & Services"]


@pytest.mark.parametrize(
    "systems",
    [
        [],
        ["display"],
        ["audio"],
        ["video_conferencing", "acoustics"],
        ["connectivity_control", "infrastructure"],
    ],
)
def test_quote_prompt_only_references_reachable_categories(systems):
    prompt = build_quote_prompt(RequirementAnswers(required_systems=systems))

    listed = _scope_line(prompt).split(", ")
    reachable = {category for system in systems for category in SYSTEM_CATEGORY_MAP[system]}
    reachable.add("Accessories & Services")

    assert set(listed) == reachable
    for category in set(CATEGORY_ORDER) - reachable:
        assert category not in listed


def test_format_requirements_skips_empty_values_and_joins_lists():
    answers = RequirementAnswers(
        room_type="Boardroom",
        capacity=12,
        rack_distance="",
        required_systems=["display", "audio"],
        audio_requirements=[],
        plenum_requirement="plenum_required",
    )

    formatted = format_requirements(answers)

    assert formatted == (
        "roomType: Boardroom; capacity: 12; requiredSystems: display, audio; plenumRequirement: plenum_required"
    )


def test_format_requirements_empty_answers():
    assert format_requirements(RequirementAnswers()) == ""


def test_quote_prompt_embeds_requirements_and_rules():
    prompt = build_quote_prompt(RequirementAnswers(room_type="Huddle Room", table_length="3m"))

    assert '**Client Requirements:** "roomType: Huddle Room; tableLength: 3m"' in prompt
    assert "TIER 1 (Perfect Match)" in prompt
    assert "Installation Consumables" in prompt
    assert "HDBaseT" in prompt


def test_refine_prompt_contains_current_quote_and_request(make_line_item):
    quote = [make_line_item(model="QM85C")]

    prompt = build_refine_prompt(quote, "Swap the display for a 98 inch model")

    assert '"model": "QM85C"' in prompt
    assert '"itemDescription"' in prompt
    assert 'User Request: "Swap the display for a 98 inch model"' in prompt


def test_validation_prompt_contains_requirements(make_line_item):
    prompt = build_validation_prompt([make_line_item()], "Boardroom for 12")

    assert 'User Requirements: "Boardroom for 12"' in prompt
    assert "'isValid' MUST be false" in prompt


def test_visualization_prompt_features_visible_equipment_only(make_line_item):
    quote = [
        make_line_item(category="Display", item_description="85in 4K display", brand="Samsung", quantity=2),
        make_line_item(category="Audio - Speakers", item_description="Ceiling speaker", brand="QSC", quantity=6),
        make_line_item(category="Cabling & Infrastructure", item_description="HDMI cable", brand="Kramer"),
    ]

    prompt = build_visualization_prompt(RequirementAnswers(room_type="boardroom"), quote)

    assert "modern corporate boardroom." in prompt
    assert "Seating: conference table." in prompt
    assert "- 2x 85in 4K display (Samsung)" in prompt
    assert "- 6x Ceiling speaker (QSC)" in prompt
    assert "HDMI cable" not in prompt


def test_schematic_prompt_excludes_passive_categories(make_line_item):
    quote = [
        make_line_item(category="Display", brand="Samsung", model="QM85C"),
        make_line_item(category="Control System & Environmental", brand="Crestron", model="CP4N"),
        make_line_item(category="Mounts & Racks", brand="Chief", model="XTM1U"),
        make_line_item(category="Accessories & Services", brand="Generic", model="Consumables"),
    ]

    prompt = build_schematic_prompt(RequirementAnswers(), quote)

    assert "corporate meeting room." in prompt
    assert "- 1x Samsung QM85C" in prompt
    assert "- 1x Crestron CP4N" in prompt
    assert "XTM1U" not in prompt
    assert "Consumables" not in prompt


def test_product_details_prompt_asks_for_marker_line():
    prompt = build_product_details_prompt("Shure MXA920")

    assert 'product: "Shure MXA920"' in prompt
    assert 'write "IMAGE_URL:"' in prompt


def test_missing_template_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        prompt_builder._render("does_not_exist.jinja2")
