"""
Movement gating.

`GatingPolicy` decides whether a new location sample is significant enough to trigger a
search. It is a frozen value: the scheduler owns the prior accepted sample and passes it
in, so the policy has no state of its own and can be swapped at any time.

Accuracy (`good_enough_accuracy`) and provider selection (`use_gps` / `use_network`) are
forwarded to the location source when it is armed; samples reaching `accept` have already
passed those filters.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from nearbyplaces.core.geo import distance
from nearbyplaces.domain.models import LocationSample


class GatingPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    minimum_location_change_m: float = Field(0, ge=0)
    good_enough_accuracy: int = Field(80, ge=0, le=100)
    use_gps: bool = True
    use_network: bool = True

    def accept(self, sample: LocationSample, prior: LocationSample | None) -> bool:
        """Return True if `sample` should trigger a search.

        Ties are accepted: a sample exactly `minimum_location_change_m` away passes.
        """
        if prior is None or self.minimum_location_change_m <= 0:
            return True
        moved = distance(prior.latitude, prior.longitude, sample.latitude, sample.longitude)
        return moved >= self.minimum_location_change_m
