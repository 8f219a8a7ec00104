import pytest

from nearbyplaces.domain.models import RawPlace, SearchResponse
from nearbyplaces.places.mapper import WEEKDAYS, PlaceResultMapper, day_index


def _raw(**extra):
    payload = {
        "geometry": {"location": {"lat": 44.6366, "lng": -63.5749}},
        "types": ["cafe", "food", "point_of_interest"],
        "permanently_closed": False,
    }
    payload.update(extra)
    return RawPlace.model_validate(payload)


def test_periods_keep_provider_order_and_values():
    raw = _raw(
        opening_hours={
            "open_now": True,
            "periods": [
                {"open": {"day": 5, "time": "0800"}, "close": {"day": 5, "time": "1730"}},
                {"open": {"day": 1, "time": "0930"}, "close": {"day": 2, "time": "0100"}},
            ],
        }
    )

    record = PlaceResultMapper().map(raw)

    assert record.location == (44.6366, -63.5749)
    assert record.types == ["cafe", "food", "point_of_interest"]
    assert record.permanently_closed is False
    assert record.open_now is True
    assert record.hours == [(5, "0800", 5, "1730"), (1, "0930", 2, "0100")]


def test_no_opening_hours_omits_open_now_and_hours():
    record = PlaceResultMapper().map(_raw())

    assert record.open_now is None
    assert record.hours is None
    out = record.to_dict()
    assert "openNow" not in out
    assert "hours" not in out
    assert out == {
        "location": [44.6366, -63.5749],
        "types": ["cafe", "food", "point_of_interest"],
        "permanentlyClosed": False,
    }


def test_opening_hours_without_periods_sets_only_open_now():
    record = PlaceResultMapper().map(_raw(opening_hours={"open_now": False}))

    assert record.open_now is False
    assert record.hours is None
    assert record.to_dict()["openNow"] is False


def test_empty_periods_list_is_kept():
    record = PlaceResultMapper().map(_raw(opening_hours={"open_now": True, "periods": []}))
    assert record.hours == []
    assert record.to_dict()["hours"] == []


def test_always_open_period_without_close():
    raw = _raw(opening_hours={"open_now": True, "periods": [{"open": {"day": 0, "time": "0000"}}]})
    record = PlaceResultMapper().map(raw)
    assert record.hours == [(0, "0000", 0, "0000")]


def test_day_names_map_to_sunday_based_indexes():
    raw = _raw(
        opening_hours={
            "periods": [{"open": {"day": "MONDAY", "time": "0900"}, "close": {"day": "Saturday", "time": "1800"}}]
        }
    )
    record = PlaceResultMapper().map(raw)
    assert record.hours == [(1, "0900", 6, "1800")]
    assert WEEKDAYS[0] == "sunday"


def test_unknown_day_is_rejected():
    with pytest.raises(ValueError):
        day_index("someday")
    with pytest.raises(ValueError):
        day_index(7)


def test_business_status_marks_place_permanently_closed():
    raw = RawPlace.model_validate(
        {"geometry": {"location": {"lat": 1.0, "lng": 2.0}}, "business_status": "CLOSED_PERMANENTLY"}
    )
    assert PlaceResultMapper().map(raw).permanently_closed is True


def test_map_response_preserves_result_order():
    response = SearchResponse.model_validate(
        {
            "results": [
                {"geometry": {"location": {"lat": 1.0, "lng": 1.0}}, "types": ["bar"]},
                {"geometry": {"location": {"lat": 2.0, "lng": 2.0}}, "types": ["park"]},
            ],
            "next_page_token": "abc",
        }
    )
    records = PlaceResultMapper().map_response(response)
    assert [r.types for r in records] == [["bar"], ["park"]]
    assert response.next_page_token == "abc"
