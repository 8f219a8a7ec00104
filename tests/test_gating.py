import pytest
from pydantic import ValidationError

from nearbyplaces.core.geo import distance
from nearbyplaces.domain.models import LocationSample
from nearbyplaces.scheduling.gating import GatingPolicy


def _sample(lat: float, lon: float) -> LocationSample:
    return LocationSample(latitude=lat, longitude=lon, accuracy=90, provider="gps", timestamp=0)


A = _sample(44.635614, -63.575676)
B = _sample(44.637269, -63.573997)


def test_first_sample_is_always_accepted():
    policy = GatingPolicy(minimum_location_change_m=500)
    assert policy.accept(A, None) is True


def test_sample_exactly_at_threshold_is_accepted():
    m = distance(A.latitude, A.longitude, B.latitude, B.longitude)
    policy = GatingPolicy(minimum_location_change_m=m)
    assert policy.accept(B, A) is True


def test_sample_just_below_threshold_is_rejected():
    m = distance(A.latitude, A.longitude, B.latitude, B.longitude)
    policy = GatingPolicy(minimum_location_change_m=m + 1e-6)
    assert policy.accept(B, A) is False


def test_identical_point_is_rejected_when_threshold_positive():
    policy = GatingPolicy(minimum_location_change_m=1)
    assert policy.accept(A, A) is False


@pytest.mark.parametrize("sample", [A, B, _sample(0.0, 0.0)])
def test_zero_threshold_accepts_everything(sample):
    policy = GatingPolicy(minimum_location_change_m=0)
    assert policy.accept(sample, A) is True


def test_policy_rejects_out_of_range_values():
    with pytest.raises(ValidationError):
        GatingPolicy(minimum_location_change_m=-1)
    with pytest.raises(ValidationError):
        GatingPolicy(good_enough_accuracy=101)


def test_policy_defaults_match_documented_configuration():
    policy = GatingPolicy()
    assert policy.minimum_location_change_m == 0
    assert policy.good_enough_accuracy == 80
    assert policy.use_gps is True
    assert policy.use_network is True
