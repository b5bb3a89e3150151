"""Tests for the logical unit extractor."""

from backend.saintshelp.config import UnitLimits
from backend.saintshelp.passages.extract import (
    ELLIPSIS,
    extract_logical_unit,
    find_anchor,
    is_preview_of,
    make_preview,
    numbered_item_starts,
)

SAYING_110 = (
    "110. On humility, the elder said that a monk must count himself as nothing before all."
)
SAYING_111 = (
    "111. Another saying tells of a brother who asked the elder about prayer and silence."
)


class TestFindAnchor:
    def test_first_term_with_a_hit_wins(self) -> None:
        text = "alpha beta gamma"
        assert find_anchor(text, ["missing", "gamma", "alpha"]) == text.index("gamma")

    def test_case_insensitive(self) -> None:
        assert find_anchor("The Elder said", ["elder"]) == 4

    def test_no_hit_anchors_at_zero(self) -> None:
        assert find_anchor("nothing here", ["humility"]) == 0
        assert find_anchor("nothing here", []) == 0


class TestNumberedItems:
    def test_marker_offsets(self) -> None:
        text = f"{SAYING_110}\n\n{SAYING_111}"
        assert numbered_item_starts(text) == [0, len(SAYING_110) + 2]

    def test_scenario_saying_block_excludes_next_saying(self) -> None:
        text = f"{SAYING_110}\n\n{SAYING_111}"

        unit = extract_logical_unit(text, ["humility"])

        assert unit.full == SAYING_110
        assert "111." not in unit.full
        assert unit.preview == SAYING_110

    def test_anchor_in_second_item_returns_second_item(self) -> None:
        text = f"{SAYING_110}\n{SAYING_111}"

        unit = extract_logical_unit(text, ["prayer"])

        assert unit.full == SAYING_111

    def test_boundaries_match_markers_exactly(self) -> None:
        third = "112. A third saying about watchfulness, vigilance and guarding the heart."
        text = f"{SAYING_110}\n{SAYING_111}\n{third}"

        unit = extract_logical_unit(text, ["brother"])

        starts = numbered_item_starts(text)
        assert unit.full == text[starts[1] : starts[2]].strip()

    def test_single_marker_falls_through_to_paragraph(self) -> None:
        text = f"Preface text that talks about many unrelated things at length.\n\n{SAYING_110}"

        unit = extract_logical_unit(text, ["humility"])

        assert unit.full == SAYING_110


class TestParagraphs:
    def test_paragraph_around_anchor(self) -> None:
        first = "The first paragraph is about nothing in particular and runs long enough."
        second = "The second paragraph speaks of humility and is also comfortably long."
        text = f"{first}\n\n{second}"

        unit = extract_logical_unit(text, ["humility"])

        assert unit.full == second

    def test_no_hit_uses_first_paragraph(self) -> None:
        first = "The first paragraph is about nothing in particular and runs long enough."
        second = "The second paragraph is also comfortably long enough to be accepted."
        text = f"{first}\n\n{second}"

        unit = extract_logical_unit(text, ["zebra"])

        assert unit.full == first


class TestWindow:
    def test_short_paragraph_falls_back_to_clipped_window(self) -> None:
        text = ("x" * 500) + "\n\nhumility\n\n" + ("y" * 500)

        unit = extract_logical_unit(text, ["humility"])

        assert unit.full.startswith(ELLIPSIS)
        assert unit.full.endswith(ELLIPSIS)
        assert "humility" in unit.full
        # 350 characters either side of the anchor plus two markers
        assert len(unit.full) == 700 + 2

    def test_window_without_clipping_has_no_markers(self) -> None:
        text = "Abba said:\n\nhumility.\n\nAmen."

        unit = extract_logical_unit(text, ["humility"])

        assert unit.full == text
        assert ELLIPSIS not in unit.full

    def test_radius_is_configurable(self) -> None:
        text = ("x" * 200) + "\n\nhumility\n\n" + ("y" * 200)

        unit = extract_logical_unit(text, ["humility"], UnitLimits(window_radius=50))

        assert len(unit.full) == 100 + 2


class TestPreview:
    def test_short_text_preview_equals_full(self) -> None:
        assert make_preview("  short text  ") == "short text"

    def test_long_text_is_truncated_with_ellipsis(self) -> None:
        full = "a" * 1000

        preview = make_preview(full)

        assert len(preview) == 901
        assert preview.endswith(ELLIPSIS)
        assert is_preview_of(preview, full)

    def test_long_unit_preview_is_prefix_of_full(self) -> None:
        words = " ".join(f"word{i}" for i in range(300))
        text = f"1. {words}\n2. {words}"

        unit = extract_logical_unit(text, ["word5"])

        assert len(unit.preview) <= 901
        assert is_preview_of(unit.preview, unit.full)

    def test_is_preview_of_accepts_ascii_ellipsis(self) -> None:
        assert is_preview_of("The elder...", "The elder said")

    def test_is_preview_of_rejects_non_prefix(self) -> None:
        assert not is_preview_of("The brother" + ELLIPSIS, "The elder said")
        assert not is_preview_of("The elder said more", "The elder said")

    def test_is_preview_of_rejects_full_length_marker(self) -> None:
        assert not is_preview_of("The elder said" + ELLIPSIS, "The elder said")
