"""Compact, gameplay-facing phenotype models for breed_sim."""

import numbers
from dataclasses import dataclass, replace
from enum import Enum, IntFlag
from typing import Dict, NamedTuple, Optional

from ..exceptions import ValidationError


STAT_MIN = 0
STAT_MAX = 100
MAX_STAT_TOTAL = STAT_MAX * 6


class StatType(Enum):
    """The six visible stats, declared in tie-break priority order."""
    STRENGTH = "strength"
    VITALITY = "vitality"
    AGILITY = "agility"
    INTELLIGENCE = "intelligence"
    ADAPTABILITY = "adaptability"
    SOCIAL = "social"


STAT_ORDER = tuple(StatType)


class GeneticMarkerFlags(IntFlag):
    """Rare bit-flag traits, always passed on once present in either parent."""
    NONE = 0
    BIOLUMINESCENT = 1
    CAMOUFLAGE_GENE = 2
    ELEMENTAL_AFFINITY = 4
    HYBRID_VIGOR = 8
    PACK_LEADER = 16
    RARE_LINEAGE = 32
    NIGHT_VISION = 64
    REGENERATION = 128


ALL_MARKERS = GeneticMarkerFlags(255)


def popcount(markers: int) -> int:
    """Number of set marker bits."""
    return bin(int(markers)).count("1")


class Color(NamedTuple):
    """RGBA colour with float components in [0, 1]."""
    r: float
    g: float
    b: float
    a: float = 1.0

    def blend(self, other: 'Color', t: float = 0.5) -> 'Color':
        """Linear interpolation from self (t=0) to other (t=1)."""
        return Color(*(a + (b - a) * t for a, b in zip(self, other)))

    def scaled(self, factor: float) -> 'Color':
        """Scale the RGB channels, keeping alpha, clamped to [0, 1]."""
        return Color(
            min(1.0, max(0.0, self.r * factor)),
            min(1.0, max(0.0, self.g * factor)),
            min(1.0, max(0.0, self.b * factor)),
            self.a,
        )


DEFAULT_PRIMARY_COLOR = Color(0.5, 0.5, 0.5, 1.0)
DEFAULT_SECONDARY_COLOR = Color(0.8, 0.8, 0.8, 1.0)


def _validate_color(name: str, color) -> Color:
    if len(color) != 4:
        raise ValidationError(f"{name} must have 4 components, got {len(color)}")
    color = Color(*(float(c) for c in color))
    for component in color:
        if not (0.0 <= component <= 1.0):
            raise ValidationError(f"{name} components must be between 0.0 and 1.0, got {color}")
    return color


@dataclass(frozen=True)
class VisualGeneticData:
    """
    Compact phenotype consumed by gameplay systems.

    Instances are immutable snapshots: breeding reads them, never writes them.
    """
    strength: int = 50
    vitality: int = 50
    agility: int = 50
    intelligence: int = 50
    adaptability: int = 50
    social: int = 50
    special_markers: GeneticMarkerFlags = GeneticMarkerFlags.NONE
    primary_color: Color = DEFAULT_PRIMARY_COLOR
    secondary_color: Color = DEFAULT_SECONDARY_COLOR

    def __post_init__(self):
        """Validate stat ranges, markers and colours."""
        for stat in STAT_ORDER:
            value = getattr(self, stat.value)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValidationError(f"{stat.value} must be an integer, got {value!r}")
            if not (STAT_MIN <= value <= STAT_MAX):
                raise ValidationError(
                    f"{stat.value} must be between {STAT_MIN} and {STAT_MAX}, got {value}"
                )
            object.__setattr__(self, stat.value, int(value))

        markers = int(self.special_markers)
        if not (0 <= markers <= int(ALL_MARKERS)):
            raise ValidationError(f"special_markers out of range: {markers}")
        object.__setattr__(self, 'special_markers', GeneticMarkerFlags(markers))
        object.__setattr__(self, 'primary_color', _validate_color('primary_color', self.primary_color))
        object.__setattr__(self, 'secondary_color', _validate_color('secondary_color', self.secondary_color))

    def get_stat(self, stat: StatType) -> int:
        return getattr(self, stat.value)

    def stats(self) -> Dict[StatType, int]:
        """Stats keyed by StatType, in priority order."""
        return {stat: self.get_stat(stat) for stat in STAT_ORDER}

    def total(self) -> int:
        """Sum of all six stats (0-600)."""
        return sum(self.get_stat(stat) for stat in STAT_ORDER)

    def has_marker(self, marker: GeneticMarkerFlags) -> bool:
        return bool(self.special_markers & marker)

    def marker_count(self) -> int:
        return popcount(self.special_markers)

    def with_changes(self, **changes) -> 'VisualGeneticData':
        """Copy with the given fields replaced (validation re-runs)."""
        return replace(self, **changes)

    @classmethod
    def from_stats(
        cls,
        stats: Dict[StatType, int],
        special_markers: GeneticMarkerFlags = GeneticMarkerFlags.NONE,
        primary_color: Optional[Color] = None,
        secondary_color: Optional[Color] = None
    ) -> 'VisualGeneticData':
        """
        Build phenotype data from a StatType mapping.

        Args:
            stats: Stat values keyed by StatType; missing stats default to 50
            special_markers: Marker bitset
            primary_color: Optional primary display colour
            secondary_color: Optional secondary display colour

        Returns:
            VisualGeneticData instance
        """
        return cls(
            **{stat.value: stats.get(stat, 50) for stat in STAT_ORDER},
            special_markers=special_markers,
            primary_color=primary_color or DEFAULT_PRIMARY_COLOR,
            secondary_color=secondary_color or DEFAULT_SECONDARY_COLOR,
        )

    @classmethod
    def from_config(cls, config: Dict) -> 'VisualGeneticData':
        """
        Create phenotype data from a plain dictionary (e.g. a YAML creature entry).

        Marker names are accepted as a list of flag names, e.g. ``['BIOLUMINESCENT']``.
        """
        markers = GeneticMarkerFlags.NONE
        raw_markers = config.get('special_markers', [])
        if isinstance(raw_markers, int):
            markers = GeneticMarkerFlags(raw_markers)
        else:
            for name in raw_markers:
                try:
                    markers |= GeneticMarkerFlags[str(name).upper()]
                except KeyError:
                    raise ValidationError(f"Unknown special marker: {name}") from None

        return cls(
            **{stat.value: config.get(stat.value, 50) for stat in STAT_ORDER},
            special_markers=markers,
            primary_color=tuple(config.get('primary_color', DEFAULT_PRIMARY_COLOR)),
            secondary_color=tuple(config.get('secondary_color', DEFAULT_SECONDARY_COLOR)),
        )
