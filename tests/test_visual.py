"""Tests for visual normalization."""

import pytest

from conftest import CARD_VISUAL, CHART_MOBILE, CHART_VISUAL, LEGACY_VISUAL, expr_text

from pbirdoc.models import FilterScope
from pbirdoc.pipeline.stage_visual import (
    canonical_visual_type,
    extract_position,
    is_custom_visual_type,
    normalize_visual,
    resolve_title,
    synthesize_title,
)


class TestVisualType:
    """Tests for visual type canonicalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("card", "Card"),
            ("columnChart", "Column Chart"),
            ("tableEx", "Table"),
            ("textbox", "Text Box"),
            ("decompositionTreeVisual", "Decomposition Tree"),
        ],
    )
    def test_builtin_types(self, raw, expected):
        assert canonical_visual_type(raw) == expected

    def test_unmapped_builtin_passes_through(self):
        assert canonical_visual_type("scatterChart") == "scatterChart"

    def test_missing_type(self):
        assert canonical_visual_type(None) == "Unknown"
        assert canonical_visual_type("") == "Unknown"

    @pytest.mark.parametrize(
        "raw",
        [
            "PBI_CV_25997FEB_F466_44FA_B562_AC4063283C4C",
            "chordCV_1234",
            "a" * 30,
        ],
    )
    def test_custom_visuals(self, raw):
        assert is_custom_visual_type(raw)
        assert canonical_visual_type(raw) == "CustomVisual"

    def test_short_name_not_custom(self):
        assert not is_custom_visual_type("a" * 29)


class TestResolveTitle:
    """Tests for display-name resolution."""

    def test_container_title_wins(self):
        """Container-level titles take precedence over legacy titles."""
        assert resolve_title(CHART_VISUAL, "Column Chart", "chart1") == "Revenue Trend"

    def test_legacy_title(self):
        assert resolve_title(LEGACY_VISUAL, "Table", "legacy1") == "Product Table"

    def test_placeholder_ignored(self):
        container = {"visual": {"visualType": "card", "visualContainerObjects": {"title": [{"properties": {"text": expr_text("Title")}}]}}}
        assert resolve_title(container, "Card", "abcdef1234") == "Card (abcdef12)"

    def test_textbox_text(self):
        container = {
            "visual": {
                "visualType": "textbox",
                "objects": {"general": [{"properties": {"paragraphs": [{"textRuns": [{"value": "Quarterly Sales"}]}]}}]},
            }
        }
        assert resolve_title(container, "Text Box", "tb1") == "Quarterly Sales"

    def test_long_textbox_text_ignored(self):
        container = {
            "visual": {
                "visualType": "textbox",
                "objects": {"general": [{"properties": {"paragraphs": [{"textRuns": [{"value": "x" * 60}]}]}}]},
            }
        }
        assert resolve_title(container, "Text Box", "textbox99") == "Text Box (textbox9)"

    def test_synthesized(self):
        assert resolve_title(CARD_VISUAL, "Card", "44929275ab") == "Card (44929275)"

    def test_synthesized_unknown(self):
        assert synthesize_title("Unknown", "0123456789") == "Visual (01234567)"


class TestExtractPosition:
    def test_values(self):
        position = extract_position(CARD_VISUAL["position"])
        assert (position.x, position.y, position.width, position.height) == (10, 20, 200, 120)
        assert position.tab_order == 1
        assert position.x2 == 210

    def test_defaults(self):
        """Missing values default to zero and negative sizes are clamped."""
        position = extract_position({"x": 5, "width": -10})
        assert position.y == 0
        assert position.width == 0
        assert extract_position(None).height == 0


class TestNormalizeVisual:
    """Tests for the assembled Visual."""

    def test_card(self):
        visual = normalize_visual("44929275ab", "overview", CARD_VISUAL)
        assert visual.visual_type == "Card"
        assert visual.raw_type == "card"
        assert visual.display_name == "Card (44929275)"
        assert visual.bindings.total == 1
        assert visual.mobile_position is None

    def test_chart(self):
        visual = normalize_visual("chart1", "overview", CHART_VISUAL, CHART_MOBILE)
        assert visual.display_name == "Revenue Trend"
        assert visual.mobile_position.width == 320
        assert [f.description for f in visual.filters] == ["GreaterThan 10"]
        assert visual.filters[0].scope == FilterScope.VISUAL

    def test_formatting(self):
        formatting = normalize_visual("chart1", "overview", CHART_VISUAL).formatting
        assert formatting.background.color == "#FFFFFF"
        assert formatting.colors == ["#118DFF"]
        assert formatting.title.font_size == "14D"
        assert formatting.border is None

    def test_legacy(self):
        visual = normalize_visual("legacy1", "details", LEGACY_VISUAL)
        assert visual.visual_type == "Table"
        assert visual.is_hidden
        assert [f.scope for f in visual.filters] == [FilterScope.QUERY]

    def test_visual_group(self):
        container = {"name": "g1", "position": {"x": 0, "y": 0}, "visualGroup": {"displayName": "Header", "groupMode": "ScaleMode"}}
        visual = normalize_visual("g1", "p1", container)
        assert visual.display_name == "Header"
        assert visual.is_group
        assert visual.visual_type == "Unknown"

    def test_not_a_dict(self):
        """Malformed containers still yield a Visual."""
        visual = normalize_visual("broken", "p1", ["not", "a", "container"])
        assert visual.display_name == "Visual (broken)"
        assert visual.bindings.total == 0


class TestMalformedVisuals:
    """Wrong JSON types inside a visual fall back to defaults."""

    def test_non_finite_position(self):
        position = extract_position({"x": float("inf"), "width": float("nan"), "tabOrder": 1e999, "angle": 10**400})
        assert position.x == 0
        assert position.width == 0
        assert position.tab_order == 0
        assert position.angle == 0

    def test_scalar_title_objects(self):
        container = {"name": "v1", "visual": {"visualType": "card", "objects": {"title": 5, "dataPoint": "red"}}}
        visual = normalize_visual("v1", "p1", container)
        assert visual.display_name == "Card (v1)"
        assert visual.formatting.colors == []

    def test_structured_style_values(self):
        container = {
            "visual": {
                "visualType": "card",
                "visualContainerObjects": {
                    "background": [{"properties": {"transparency": {"literal": {"value": {"nested": 1}}}}}],
                },
            }
        }
        formatting = normalize_visual("v1", "p1", container).formatting
        assert formatting.background is None

    def test_non_string_group_name(self):
        visual = normalize_visual("g1", "p1", {"name": 4, "visualGroup": {"displayName": ["x"]}})
        assert visual.name is None
        assert visual.display_name == "g1"
