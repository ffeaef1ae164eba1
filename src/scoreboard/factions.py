"""Factions, detection regions and streak milestone messages.

The capture pipeline stacks four fixed-size crops of the game screen into a
single grayscale image. Each crop shows one player's "GAME OVER" banner:

    Area1, Area2 -> the two Zeon players
    Area3, Area4 -> the two Federation players

When both players of one faction show the banner, that faction lost the match.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Set


# Text the OCR engine reports for a game over banner
GAMEOVER_MARKER = "GAMEOVER"

# Every crop is scaled to this size before stacking
REGION_WIDTH = 562
REGION_HEIGHT = 105


class Faction(Enum):
    """One of the two competing sides."""

    ZEON = ("zeon", "自護")
    FEDERATION = ("federation", "連邦")

    def __init__(self, key: str, display_name: str):
        self.key = key
        self.display_name = display_name

    @property
    def opponent(self) -> "Faction":
        return Faction.FEDERATION if self is Faction.ZEON else Faction.ZEON


# Side A / side B naming used by the outcome classifier
SIDE_A = Faction.ZEON
SIDE_B = Faction.FEDERATION


@dataclass(frozen=True)
class RegionRectangle:
    """Pixel rectangle inside the stacked image."""
    left: int
    top: int
    width: int
    height: int


class Region(Enum):
    """Fixed detection zones in the stacked image, top to bottom."""

    AREA1 = ("Area1", 0, SIDE_A)
    AREA2 = ("Area2", 1, SIDE_A)
    AREA3 = ("Area3", 2, SIDE_B)
    AREA4 = ("Area4", 3, SIDE_B)

    def __init__(self, label: str, index: int, faction: Faction):
        self.label = label
        self.index = index
        self.faction = faction

    @property
    def rectangle(self) -> RegionRectangle:
        # The rightmost column is left out, matching the recognizer's crop width
        return RegionRectangle(
            left=0,
            top=self.index * REGION_HEIGHT,
            width=REGION_WIDTH - 1,
            height=REGION_HEIGHT,
        )

    @classmethod
    def from_label(cls, label: str) -> "Region":
        normalized = label.strip().lower()
        for region in cls:
            if region.label.lower() == normalized or region.name.lower() == normalized:
                return region
        raise ValueError(f"Unknown region: {label}")


def regions_for(faction: Faction) -> Set[Region]:
    """Return the regions whose banners mean ``faction`` lost."""
    return {region for region in Region if region.faction is faction}


def parse_regions(labels: Iterable[str]) -> Set[Region]:
    """Parse region labels such as ``Area1`` or ``area3``."""
    return {Region.from_label(label) for label in labels}


# Milestone narration for consecutive wins
STREAK_MESSAGES: Dict[int, str] = {
    3: "帽子戲法",
    4: "大四喜",
    5: "五福臨門",
    6: "六六無窮",
    7: "七星報喜",
    8: "八仙過海",
    9: "九霄雲外",
    10: "十全十美",
}
SUPER_STREAK_MESSAGE = "數唔到喇，打L死人咩"
MAX_NAMED_STREAK = 10


def streak_message(streak: int) -> Optional[str]:
    """Return the milestone message for a streak length, if any."""
    if streak > MAX_NAMED_STREAK:
        return SUPER_STREAK_MESSAGE
    return STREAK_MESSAGES.get(streak)
