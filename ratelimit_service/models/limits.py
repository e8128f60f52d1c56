"""
Limit data models.

This module contains the value types describing what a tier is allowed to do:
the unbounded marker, period types, limit triples and the tier table.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Union

from ..errors import ConfigurationError, InvalidPeriodTypeError

NONE_ENTITLEMENT = "none"


class Unbounded(Enum):
    """Marker for a period that has no cap."""
    UNBOUNDED = "unbounded"

    def __repr__(self) -> str:
        return "UNBOUNDED"


UNBOUNDED = Unbounded.UNBOUNDED

# A limit (or a remaining count) is either a non-negative int or UNBOUNDED
Limit = Union[int, Unbounded]


class PeriodType(Enum):
    """Counting periods, in the order they are evaluated."""
    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY = "monthly"

    @property
    def api_name(self) -> str:
        """Short name used by reporting APIs ('hour', 'day', 'month')."""
        return _API_NAMES[self]

    @classmethod
    def parse(cls, value: Union["PeriodType", str]) -> "PeriodType":
        """
        Convert a period type or one of its names into a PeriodType.

        Accepts both the stored names ('hourly', 'daily', 'monthly') and the
        API names ('hour', 'day', 'month').

        Raises:
            InvalidPeriodTypeError: If the value is not a known period type
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            for period_type in cls:
                if name in (period_type.value, period_type.api_name):
                    return period_type
        raise InvalidPeriodTypeError(value)

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        """Check whether a value names a period type."""
        try:
            cls.parse(value)
        except InvalidPeriodTypeError:
            return False
        return True


_API_NAMES = {
    PeriodType.HOURLY: "hour",
    PeriodType.DAILY: "day",
    PeriodType.MONTHLY: "month",
}


def parse_limit(value: Any) -> Limit:
    """
    Read a single limit from configuration data.

    None, UNBOUNDED and the string 'unbounded' mean no cap; otherwise the
    value must be a non-negative integer.

    Raises:
        ConfigurationError: If the value is not a valid limit
    """
    if value is None or value is UNBOUNDED:
        return UNBOUNDED
    if isinstance(value, str) and value.strip().lower() == UNBOUNDED.value:
        return UNBOUNDED
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"Limit must be a non-negative integer or unbounded, got {value!r}")
    if value < 0:
        raise ConfigurationError(f"Limit must not be negative, got {value}")
    return value


def limit_to_json(value: Limit) -> Optional[int]:
    """Serialize a limit; UNBOUNDED becomes None."""
    return None if value is UNBOUNDED else value


@dataclass(frozen=True)
class RateLimits:
    """Hourly, daily and monthly request limits for one tier."""
    hourly: Limit = UNBOUNDED
    daily: Limit = UNBOUNDED
    monthly: Limit = UNBOUNDED

    def for_period(self, period_type: PeriodType) -> Limit:
        """Get the limit that applies to a period type."""
        return getattr(self, period_type.value)

    def items(self) -> Iterator[tuple]:
        """Iterate (period_type, limit) pairs in evaluation order."""
        for period_type in PeriodType:
            yield period_type, self.for_period(period_type)

    def to_dict(self) -> Dict[str, Optional[int]]:
        """Convert to dictionary for JSON serialization."""
        return {
            "hourly": limit_to_json(self.hourly),
            "daily": limit_to_json(self.daily),
            "monthly": limit_to_json(self.monthly),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RateLimits":
        """Create RateLimits from dictionary; missing periods are unbounded."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Tier limits must be a mapping, got {type(data).__name__}")
        unknown = set(data) - {p.value for p in PeriodType}
        if unknown:
            raise ConfigurationError(f"Unknown period(s) in tier limits: {sorted(unknown)}")
        return cls(
            hourly=parse_limit(data.get("hourly")),
            daily=parse_limit(data.get("daily")),
            monthly=parse_limit(data.get("monthly")),
        )


@dataclass
class RateLimitsConfig:
    """
    Tier table mapping each entitlement tag to its limits.

    The 'none' tier must always be present; it applies whenever a caller has
    no configured entitlement.
    """
    tiers: Dict[str, RateLimits] = field(default_factory=dict)

    def __post_init__(self):
        if NONE_ENTITLEMENT not in self.tiers:
            raise ConfigurationError(
                f"Rate limits config must define the '{NONE_ENTITLEMENT}' tier"
            )
        for name, limits in self.tiers.items():
            if not isinstance(limits, RateLimits):
                raise ConfigurationError(f"Tier '{name}' must map to RateLimits")

    def __contains__(self, entitlement: str) -> bool:
        return entitlement in self.tiers

    def __getitem__(self, entitlement: str) -> RateLimits:
        return self.tiers[entitlement]

    def __iter__(self) -> Iterator[str]:
        return iter(self.tiers)

    def __len__(self) -> int:
        return len(self.tiers)

    def get(self, entitlement: str) -> Optional[RateLimits]:
        return self.tiers.get(entitlement)

    @property
    def fallback(self) -> RateLimits:
        """Limits of the 'none' tier."""
        return self.tiers[NONE_ENTITLEMENT]

    def to_dict(self) -> Dict[str, Dict[str, Optional[int]]]:
        """Convert to dictionary for JSON serialization."""
        return {name: limits.to_dict() for name, limits in self.tiers.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RateLimitsConfig":
        """
        Create RateLimitsConfig from dictionary.

        Raises:
            ConfigurationError: If the data is malformed or lacks the 'none' tier
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"Rate limits config must be a mapping, got {type(data).__name__}")
        tiers = {}
        for name, limits in data.items():
            try:
                tiers[str(name)] = RateLimits.from_dict(limits)
            except ConfigurationError as e:
                raise ConfigurationError(f"Invalid limits for tier '{name}': {e}") from e
        return cls(tiers=tiers)
