"""
Unit tests for factions and detection regions.

Tests region geometry, label parsing and streak milestone messages.
"""

import pytest

from src.scoreboard.factions import (
    SIDE_A, SIDE_B, SUPER_STREAK_MESSAGE, Faction, Region,
    parse_regions, regions_for, streak_message
)


@pytest.mark.unit
class TestFaction:
    """Test suite for Faction."""

    def test_opponents(self):
        """Test each faction's opponent is the other one."""
        assert Faction.ZEON.opponent is Faction.FEDERATION
        assert Faction.FEDERATION.opponent is Faction.ZEON

    def test_sides(self):
        """Test side A is Zeon and side B is Federation."""
        assert SIDE_A is Faction.ZEON
        assert SIDE_B is Faction.FEDERATION

    def test_keys_and_display_names(self):
        """Test serialized keys and on-screen names."""
        assert [f.key for f in Faction] == ["zeon", "federation"]
        assert Faction.ZEON.display_name == "自護"
        assert Faction.FEDERATION.display_name == "連邦"


@pytest.mark.unit
class TestRegion:
    """Test suite for Region geometry and parsing."""

    @pytest.mark.parametrize("region,top", [
        (Region.AREA1, 0),
        (Region.AREA2, 105),
        (Region.AREA3, 210),
        (Region.AREA4, 315),
    ])
    def test_rectangles(self, region, top):
        """Test zone rectangles in the stacked image."""
        rect = region.rectangle

        assert rect.left == 0
        assert rect.top == top
        assert rect.width == 561
        assert rect.height == 105

    def test_factions(self):
        """Test the first two zones belong to side A, the last two to side B."""
        assert regions_for(SIDE_A) == {Region.AREA1, Region.AREA2}
        assert regions_for(SIDE_B) == {Region.AREA3, Region.AREA4}

    def test_from_label(self):
        """Test label parsing is case-insensitive and accepts enum names."""
        assert Region.from_label("Area1") is Region.AREA1
        assert Region.from_label("area3") is Region.AREA3
        assert Region.from_label(" AREA4 ") is Region.AREA4

    def test_from_label_unknown(self):
        """Test unknown labels are rejected."""
        with pytest.raises(ValueError, match="Unknown region"):
            Region.from_label("Area5")

    def test_parse_regions_deduplicates(self):
        """Test repeated labels collapse into one region."""
        assert parse_regions(["Area1", "area1", "Area2"]) == {Region.AREA1, Region.AREA2}


@pytest.mark.unit
class TestStreakMessages:
    """Test suite for streak milestone messages."""

    @pytest.mark.parametrize("streak", [0, 1, 2])
    def test_no_message_below_three(self, streak):
        """Test short streaks are not announced."""
        assert streak_message(streak) is None

    @pytest.mark.parametrize("streak,message", [
        (3, "帽子戲法"),
        (4, "大四喜"),
        (5, "五福臨門"),
        (6, "六六無窮"),
        (7, "七星報喜"),
        (8, "八仙過海"),
        (9, "九霄雲外"),
        (10, "十全十美"),
    ])
    def test_named_milestones(self, streak, message):
        """Test each named milestone."""
        assert streak_message(streak) == message

    @pytest.mark.parametrize("streak", [11, 12, 50])
    def test_super_streak(self, streak):
        """Test every streak beyond ten gets the super streak message."""
        assert streak_message(streak) == SUPER_STREAK_MESSAGE
