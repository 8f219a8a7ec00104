import pytest

from nearbyplaces.domain.place_types import PLACE_TYPES, normalize_place_type


@pytest.mark.parametrize("value", [None, "", "   "])
def test_empty_place_type_means_none(value):
    assert normalize_place_type(value) is None


def test_place_type_is_case_insensitive():
    assert normalize_place_type("Shopping_Mall") == "shopping_mall"
    assert "shopping_mall" in PLACE_TYPES


def test_unknown_place_type_names_the_value():
    with pytest.raises(ValueError, match="Unknown type of place: spaceport"):
        normalize_place_type("spaceport")


@pytest.mark.parametrize("value", [42, ["cafe"], True])
def test_non_string_place_type_is_rejected(value):
    with pytest.raises(ValueError, match="Unknown type of place"):
        normalize_place_type(value)
