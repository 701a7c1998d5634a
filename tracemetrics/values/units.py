"""
Units attached to every scalar and histogram value.

Units are a closed set, so they double as the key for choosing a histogram
layout (see tracemetrics.metrics.memory).
"""
from enum import Enum


class Unit(str, Enum):
    UNITLESS                               = "unitless"
    NORMALIZED_PERCENTAGE_BIGGER_IS_BETTER = "normalizedPercentage_biggerIsBetter"
    SIZE_IN_BYTES_SMALLER_IS_BETTER        = "sizeInBytes_smallerIsBetter"
    UNITLESS_NUMBER_SMALLER_IS_BETTER      = "unitlessNumber_smallerIsBetter"

    @property
    def unit_name(self) -> str:
        return self.value

    @classmethod
    def by_name(cls, name: str) -> "Unit":
        """Look up a unit by its wire name.  Raises ValueError if unknown."""
        try:
            return cls(name)
        except ValueError:
            known = ", ".join(u.value for u in cls)
            raise ValueError(f"Unknown unit {name!r}.  Known units: {known}") from None
