"""Unit tests for instruction building and prompt list helpers."""

import pytest

from styleprompt.core.prompt import (
    build_instruction,
    format_progress,
    format_prompt_list,
    normalize_description,
    prompt_key,
    select_new_prompts,
    validate_prompt_count,
)
from styleprompt.utils.exceptions import ValidationError


@pytest.mark.unit
class TestValidatePromptCount:
    def test_accepts_positive(self):
        assert validate_prompt_count(5) == 5

    @pytest.mark.parametrize("bad", [0, -1, 2.5, "5", None, True])
    def test_rejects_non_positive_and_non_int(self, bad):
        with pytest.raises(ValidationError) as exc_info:
            validate_prompt_count(bad)
        assert exc_info.value.field == "count"

    def test_rejects_above_maximum(self):
        with pytest.raises(ValidationError, match="exceed 50"):
            validate_prompt_count(51, maximum=50, field="target_count")

    def test_maximum_is_inclusive(self):
        assert validate_prompt_count(50, maximum=50) == 50


@pytest.mark.unit
class TestNormalizeDescription:
    @pytest.mark.parametrize("value", [None, "", "   ", "\n\t"])
    def test_empty_is_none(self, value):
        assert normalize_description(value) is None

    def test_strips(self):
        assert normalize_description("  a logo  ") == "a logo"


@pytest.mark.unit
class TestBuildInstruction:
    def test_contains_exact_count(self):
        text = build_instruction(5)
        assert "exactly 5" in text

    def test_covers_style_axes_and_steps(self):
        text = build_instruction(5)
        for axis in ("Line Work", "Color Palette", "Shading & Texture", "Overall Aesthetic"):
            assert axis in text
        assert "Identify Core Subject" in text
        assert "Identify and Name Style" in text
        assert "JSON" in text

    def test_no_description_omits_context(self):
        text = build_instruction(5)
        assert "The user has provided this description" not in text

    def test_description_is_embedded(self):
        text = build_instruction(5, description="A logo for a coffee shop")
        assert 'this description for context: "A logo for a coffee shop"' in text

    def test_whitespace_description_treated_as_absent(self):
        assert build_instruction(5, description="   ") == build_instruction(5)

    def test_no_exclusions_omits_continuation(self):
        text = build_instruction(5, existing_prompts=[])
        assert "already generated" not in text

    def test_exclusions_are_listed(self):
        text = build_instruction(3, existing_prompts=["a red fox", "a blue whale"])
        assert "already generated" in text
        assert "- a red fox\n- a blue whale" in text
        assert "exactly 3" in text

    def test_final_instruction_comes_last(self):
        text = build_instruction(5, existing_prompts=["x"])
        assert text.index("already generated") < text.index("Return ONLY a JSON object")

    def test_invalid_count_raises(self):
        with pytest.raises(ValidationError):
            build_instruction(0)


@pytest.mark.unit
class TestSelectNewPrompts:
    def test_keeps_order_and_limit(self):
        assert select_new_prompts(["a", "b", "c"], [], 2) == ["a", "b"]

    def test_drops_existing_case_and_whitespace_insensitive(self):
        selected = select_new_prompts(["A  Red Fox", "a cat"], ["a red fox"], 5)
        assert selected == ["a cat"]

    def test_drops_duplicates_within_batch(self):
        assert select_new_prompts(["dog", "Dog ", "owl"], [], 5) == ["dog", "owl"]

    def test_drops_empty_and_strips(self):
        assert select_new_prompts(["  ", "", " owl "], [], 5) == ["owl"]

    def test_prompt_key(self):
        assert prompt_key("  A\tRed   Fox ") == "a red fox"


@pytest.mark.unit
class TestFormatting:
    def test_format_prompt_list(self):
        assert format_prompt_list(["a", "b"]) == "1. a\n\n2. b"

    def test_format_prompt_list_empty(self):
        assert format_prompt_list([]) == ""

    def test_format_progress(self):
        assert format_progress(10, 25) == "10 of 25"
