import pytest

from listingstamp.models import ListingFields
from listingstamp.naming import build_output_name


def test_build_output_name_with_tokens() -> None:
    fields = ListingFields(address="123 Main St, Austin, TX 78701", price="$450,000", status="just_sold")
    name = build_output_name("{template}_{street}_{status}.{ext}", "navy_header", fields, extension="PNG")
    assert name == "navy_header_123_Main_St_just_sold.png"

    name = build_output_name("{street}-{price}", "navy_header", fields, extension="jpg", status="open house")
    assert name == "123_Main_St-450000.jpg"


def test_build_output_name_rejects_unknown_key() -> None:
    with pytest.raises(ValueError):
        build_output_name("{bird}.{ext}", "navy_header", ListingFields(), extension="png")
