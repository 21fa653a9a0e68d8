"""Tests for the field type catalog."""

import pytest

from formgen.catalog import (
    DEFAULT_FIELD_TYPE,
    FIELD_TYPES,
    build_field_type_reference,
    build_prompt_reference,
    is_choice_type,
    is_multi_select_type,
    is_text_answer_type,
    normalize_field_type,
    upgrade_field_type,
)


class TestCatalog:
    """Tests for the static registry."""

    def test_size_and_core_keys(self):
        assert 25 <= len(FIELD_TYPES) <= 35
        for key in ("short-answer", "long-answer", "multiple-choice", "checkboxes", "email", "star-rating"):
            assert key in FIELD_TYPES

    def test_every_entry_described(self):
        for key, spec in FIELD_TYPES.items():
            assert spec.category, key
            assert spec.description, key
            assert spec.use_when, key

    def test_predicates(self):
        assert is_choice_type("multiple-choice")
        assert is_choice_type("dropdown")
        assert is_choice_type("checkboxes")
        assert not is_choice_type("short-answer")
        assert is_multi_select_type("checkboxes")
        assert is_multi_select_type("multiselect")
        assert not is_multi_select_type("multiple-choice")
        assert is_text_answer_type("long-answer")
        assert not is_text_answer_type("email")


class TestReferences:
    """Tests for the prompt reference builders."""

    def test_prompt_reference_lists_input_types_only(self):
        reference = build_prompt_reference()
        assert "**Text:**" in reference
        assert "- multiple-choice:" in reference
        assert "divider" not in reference
        assert "heading" not in reference

    def test_field_type_reference_includes_signals(self):
        reference = build_field_type_reference()
        assert "### Display" in reference
        assert '"divider"' in reference
        assert "Signals:" in reference
        assert "Use when:" in reference


class TestNormalization:
    """Tests for mapping model-suggested types onto catalog keys."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("multiple-choice", "multiple-choice"),
            ("Multiple_Choice", "multiple-choice"),
            ("star rating", "star-rating"),
            ("textarea", "long-answer"),
            ("tel", "phone"),
            ("date", "date-picker"),
        ],
    )
    def test_known_spellings(self, raw, expected):
        assert normalize_field_type(raw) == expected

    def test_missing_type(self):
        assert normalize_field_type(None) == DEFAULT_FIELD_TYPE
        assert normalize_field_type("") == DEFAULT_FIELD_TYPE

    def test_legacy_text_uses_label(self):
        assert normalize_field_type("text", "Work email") == "email"
        assert normalize_field_type("text", "Describe the issue") == "long-answer"

    def test_legacy_radio_uses_options(self):
        assert normalize_field_type("radio", "Attending?", ["Yes", "No"]) == "switch"
        assert normalize_field_type("radio", "Pick", [str(i) for i in range(8)]) == "dropdown"

    def test_unknown_type_with_options_becomes_choice(self):
        assert normalize_field_type("fancy-picker", "Pick one", ["A", "B", "C"]) == "multiple-choice"

    def test_unknown_type_without_options(self):
        assert normalize_field_type("hologram") == DEFAULT_FIELD_TYPE

    def test_upgrade_number(self):
        assert upgrade_field_type("number", "How would you rate us") == "star-rating"
        assert upgrade_field_type("number", "Monthly budget") == "currency"
        assert upgrade_field_type("number", "Guests") == "number"

    def test_upgrade_unknown_unchanged(self):
        assert upgrade_field_type("email", "Email") == "email"
