import pytest

from listingstamp.compositor import order_program
from listingstamp.constants import SLOT_OPTIONS
from listingstamp.errors import TemplateNotFound
from listingstamp.models import AgentInfo, ListingFields
from listingstamp.templates import get_template, list_templates, register_template
from listingstamp.templates.base import CoverFit
from listingstamp.templates.navy_header import NavyHeaderTemplate

FIELDS = ListingFields(address="123 Main St, Austin, TX 78701", price=450000, beds=3, baths=2, sqft=2100)


def test_builtin_templates_are_registered() -> None:
    ids = list_templates()
    for template_id in ("navy_header", "classic_square", "story_overlay", "landscape_banner", "duo_split"):
        assert template_id in ids


def test_unknown_template_raises_lookup_error() -> None:
    with pytest.raises(TemplateNotFound) as excinfo:
        get_template("nope")
    assert isinstance(excinfo.value, LookupError)
    assert "navy_header" in excinfo.value.known


def test_duplicate_template_id_is_rejected() -> None:
    class Clash(NavyHeaderTemplate):
        pass

    with pytest.raises(ValueError):
        register_template(Clash)


def test_output_size_keeps_reference_aspect() -> None:
    tpl = get_template("navy_header")
    assert tpl.output_size(1080) == (1080, 1350)
    assert tpl.output_size(540) == (540, 675)
    assert get_template("landscape_banner").output_size(600) == (600, 315)


@pytest.mark.parametrize("template_id", ["navy_header", "classic_square", "story_overlay", "landscape_banner", "duo_split"])
def test_programs_only_read_declared_slots(template_id: str) -> None:
    tpl = get_template(template_id)
    resolved = {slot: None for slot in SLOT_OPTIONS}
    program = order_program(
        tpl,
        tpl.build_program(1.0, FIELDS, "just_listed", resolved, AgentInfo("Jane Doe", "512-555-0100")),
    )
    stages = [op.stage for op in program]
    assert stages == sorted(stages)
    assert all(op.slot is None or op.slot in tpl.declared_slots for op in program)


def test_program_is_resolution_independent() -> None:
    tpl = get_template("navy_header")
    resolved = {slot: None for slot in tpl.declared_slots}
    full = [op.to_dict() for op in tpl.build_program(tpl.scale_for(1080), FIELDS, "just_listed", resolved)]
    half = [op.to_dict() for op in tpl.build_program(tpl.scale_for(540), FIELDS, "just_listed", resolved)]
    assert full == half


def test_order_program_rejects_undeclared_slot() -> None:
    tpl = get_template("classic_square")
    with pytest.raises(ValueError):
        order_program(tpl, [CoverFit(slot="secondary_photo", x=0, y=0, w=10, h=10)])
