"""Tests for the semantic field analyzer."""

import asyncio

import pytest

from formgen.errors import ProviderError
from formgen.models.analysis import FieldAnalysisInput
from formgen.models.pipeline import FormField, QuizConfig
from formgen.stages.field_analyzer import (
    analyze_field_locally,
    analyze_field_types,
    batch_generate_quiz_options,
    generate_quiz_options_with_ai,
    has_usable_options,
    is_placeholder_option,
    is_quiz_context,
    optimize_field_types,
)


def analyze(fields, context, client):
    return asyncio.run(analyze_field_types(fields, context, client=client))


class TestLocalAnalysis:
    """Tests for the keyword fallback."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Email address", "email"),
            ("Mobile phone", "phone"),
            ("How would you rate our service?", "star-rating"),
            ("Tell us about your experience", "long-answer"),
            ("Date of birth", "date-picker"),
            ("Upload your resume", "file-uploader"),
            ("Company website", "url"),
            ("Select all that apply", "checkboxes"),
        ],
    )
    def test_keywords(self, label, expected):
        assert analyze_field_locally(FieldAnalysisInput(label=label)).recommended_type == expected

    def test_keywords_match_whole_words(self):
        # "rate" must not fire inside "separate", "cell" inside "cancellation"
        assert analyze_field_locally(FieldAnalysisInput(label="Separate notes")).recommended_type == "short-answer"
        assert analyze_field_locally(FieldAnalysisInput(label="Cancellation reason")).recommended_type != "phone"

    def test_yes_no_options(self):
        result = analyze_field_locally(FieldAnalysisInput(label="Vegetarian?", options=["Yes", "No"]))
        assert result.recommended_type == "switch"

    def test_many_options_dropdown(self):
        options = [f"Country {i}" for i in range(10)]
        result = analyze_field_locally(FieldAnalysisInput(label="Pick one", options=options))
        assert result.recommended_type == "dropdown"

    def test_default(self):
        result = analyze_field_locally(FieldAnalysisInput(label="Favorite color"))
        assert result.recommended_type == "short-answer"
        assert result.confidence == 0.5


class TestPlaceholders:
    """Tests for placeholder option detection."""

    @pytest.mark.parametrize("option", ["Option 1", "[Option 2 - needs editing]", "", "  ", None])
    def test_placeholder(self, option):
        assert is_placeholder_option(option)

    def test_real_option(self):
        assert not is_placeholder_option("Jupiter")

    def test_has_usable_options(self):
        assert has_usable_options(["Option 1", "Mars"])
        assert not has_usable_options(["Option 1", "Option 2"])
        assert not has_usable_options(None)

    def test_quiz_context(self):
        assert is_quiz_context("quiz")
        assert is_quiz_context("Final EXAM")
        assert not is_quiz_context("contact")
        assert not is_quiz_context(None)


class TestAnalyzeFieldTypes:
    """Tests for the batched AI path and its fallbacks."""

    def test_ai_results_used(self, make_provider, make_client):
        provider = make_provider(
            "p",
            {
                "field-optimization": {
                    "results": [
                        {"recommendedType": "email", "confidence": 0.97, "reasoning": "email"},
                        {"recommendedType": "Star Rating", "confidence": "80"},
                    ]
                }
            },
        )
        fields = [
            FieldAnalysisInput(label="Your email", current_type="short-answer"),
            FieldAnalysisInput(label="Service quality", current_type="short-answer"),
        ]

        results = analyze(fields, "feedback", make_client(provider))

        assert [r.recommended_type for r in results] == ["email", "star-rating"]
        assert results[1].confidence == pytest.approx(0.8)

    def test_failure_falls_back_to_local(self, make_provider, make_client):
        """Test one populated result per field when the AI call fails."""
        provider = make_provider("p", {"field-optimization": ProviderError("p", "model-a", "HTTP 500")})
        fields = [
            FieldAnalysisInput(label="Email"),
            FieldAnalysisInput(label="Comments"),
            FieldAnalysisInput(label="Something else"),
        ]

        results = analyze(fields, "contact", make_client(provider))

        assert len(results) == 3
        assert [r.recommended_type for r in results] == ["email", "long-answer", "short-answer"]

    def test_unparseable_response_falls_back(self, make_provider, make_client):
        provider = make_provider("p", {"field-optimization": "I think they are all text fields."})
        results = analyze([FieldAnalysisInput(label="Phone number")], "contact", make_client(provider))
        assert results[0].recommended_type == "phone"

    def test_short_batch_padded(self, make_provider, make_client):
        # A list script is consumed per call, so the bare-list body is nested once
        provider = make_provider("p", {"field-optimization": [[{"recommendedType": "long-answer", "confidence": 0.9}]]})
        fields = [FieldAnalysisInput(label="Bio"), FieldAnalysisInput(label="Work email")]

        results = analyze(fields, "registration", make_client(provider))

        assert [r.recommended_type for r in results] == ["long-answer", "email"]

    def test_quiz_override_forces_choice(self, make_provider, make_client):
        provider = make_provider(
            "p",
            {
                "field-optimization": {"results": [{"recommendedType": "short-answer", "confidence": 0.6}]},
                "fast-classification": {
                    "results": [{"options": ["Jupiter", "Saturn", "Earth", "Mars"], "correctAnswer": "Jupiter"}]
                },
            },
        )
        fields = [FieldAnalysisInput(label="Which planet is the largest?", current_type="short-answer")]

        (result,) = analyze(fields, "quiz", make_client(provider))

        assert result.recommended_type == "multiple-choice"
        assert result.confidence >= 0.9
        assert result.suggested_options == ["Jupiter", "Saturn", "Earth", "Mars"]
        assert result.suggested_correct_answer == "Jupiter"
        assert provider.purposes_called == ["field-optimization", "fast-classification"]

    def test_quiz_keeps_existing_choice_type(self, make_provider, make_client):
        provider = make_provider("p", {"field-optimization": {"results": [{"recommendedType": "date-picker"}]}})
        fields = [
            FieldAnalysisInput(
                label="When did Apollo 11 land?",
                current_type="multiple-choice",
                options=["1969", "1972", "1959", "1981"],
            )
        ]

        (result,) = analyze(fields, "quiz", make_client(provider))

        assert result.recommended_type == "multiple-choice"
        assert result.suggested_correct_answer == "1969"
        assert provider.purposes_called == ["field-optimization"]

    def test_quiz_without_ai_gets_marked_placeholders(self, make_client):
        fields = [FieldAnalysisInput(label="What is the capital of France?", current_type="short-answer")]

        (result,) = analyze(fields, "quiz", make_client())

        assert result.recommended_type == "multiple-choice"
        assert len(result.suggested_options) == 4
        assert all(is_placeholder_option(o) for o in result.suggested_options)
        assert result.suggested_correct_answer in result.suggested_options

    def test_empty_input(self, make_client):
        assert analyze([], "quiz", make_client()) == []


class TestQuizOptions:
    """Tests for quiz option generation."""

    def test_answer_substituted_into_slot_zero(self, make_provider, make_client):
        provider = make_provider(
            "p", {"fast-classification": {"options": ["Venus", "Mars", "Earth", "Pluto"], "correctAnswer": "Mercury"}}
        )

        result = asyncio.run(generate_quiz_options_with_ai("Closest planet to the Sun?", client=make_client(provider)))

        assert result.options == ["Mercury", "Mars", "Earth", "Pluto"]
        assert result.correct_answer == "Mercury"

    def test_missing_answer_defaults_to_first(self, make_provider, make_client):
        provider = make_provider("p", {"fast-classification": {"options": ["A", "B", "C"]}})
        (result,) = asyncio.run(batch_generate_quiz_options([("Q", None)], client=make_client(provider)))
        assert result.correct_answer == "A"

    def test_failure_gives_placeholders(self, make_client):
        results = asyncio.run(batch_generate_quiz_options([("Q1", None), ("Q2", "hint")], client=make_client()))
        assert len(results) == 2
        assert results[0].options[0] == "[Option 1 - needs editing]"
        assert results[0].correct_answer == results[0].options[0]

    def test_too_few_real_options(self, make_provider, make_client):
        provider = make_provider(
            "p", {"fast-classification": {"results": [{"options": ["Option 1", "Real"], "correctAnswer": "Real"}]}}
        )
        (result,) = asyncio.run(batch_generate_quiz_options([("Q", None)], client=make_client(provider)))
        assert all(is_placeholder_option(o) for o in result.options)


class TestOptimizeFieldTypes:
    """Tests for applying analyses to generated fields."""

    def test_upgrade_threshold(self, make_provider, make_client):
        provider = make_provider(
            "p",
            {
                "field-optimization": {
                    "results": [
                        {"recommendedType": "email", "confidence": 0.95, "suggestedPlaceholder": "you@example.com"},
                        {"recommendedType": "long-answer", "confidence": 0.5},
                    ]
                }
            },
        )
        fields = [
            FormField(id="f0", label="Email", type="short-answer", order=0),
            FormField(id="f1", label="Notes", type="short-answer", order=1),
        ]

        optimized = asyncio.run(optimize_field_types(fields, "contact", client=make_client(provider)))

        assert optimized[0].type == "email"
        assert optimized[0].placeholder == "you@example.com"
        assert optimized[1].type == "short-answer"
        assert [f.order for f in optimized] == [0, 1]
        # Inputs are not mutated
        assert fields[0].type == "short-answer"

    def test_quiz_field_gets_options_and_answer(self, make_provider, make_client):
        provider = make_provider(
            "p",
            {
                "field-optimization": {"results": [{"recommendedType": "multiple-choice", "confidence": 0.9}]},
                "fast-classification": {"results": [{"options": ["H2O", "CO2", "O2", "NaCl"], "correctAnswer": "H2O"}]},
            },
        )
        fields = [FormField(id="q1", label="Chemical formula of water?", type="short-answer", order=0)]

        (field,) = asyncio.run(optimize_field_types(fields, "quiz", client=make_client(provider)))

        assert field.type == "multiple-choice"
        assert field.options == ["H2O", "CO2", "O2", "NaCl"]
        assert field.quiz_config.correct_answer == "H2O"
        assert field.placeholder is None

    def test_existing_answer_kept(self, make_provider, make_client):
        provider = make_provider(
            "p",
            {
                "field-optimization": {
                    "results": [{"recommendedType": "multiple-choice", "confidence": 0.9, "suggestedCorrectAnswer": "B"}]
                }
            },
        )
        fields = [
            FormField(
                id="q1",
                label="Pick",
                type="multiple-choice",
                options=["A", "B", "C"],
                quiz_config=QuizConfig(correct_answer="C", points=2),
                order=0,
            )
        ]

        (field,) = asyncio.run(optimize_field_types(fields, "quiz", client=make_client(provider)))

        assert field.quiz_config.correct_answer == "C"
        assert field.quiz_config.points == 2

    def test_low_confidence_choice_still_converts_text_question(self, make_provider, make_client):
        provider = make_provider(
            "p",
            {
                "field-optimization": {"results": [{"recommendedType": "multiple-choice", "confidence": 0.6}]},
                "fast-classification": {"results": [{"options": ["Mars", "Venus", "Earth"], "correctAnswer": "Mars"}]},
            },
        )
        fields = [FormField(id="q1", label="Which planet is red?", type="short-answer", order=0)]

        (field,) = asyncio.run(optimize_field_types(fields, "quiz", client=make_client(provider)))

        assert field.type == "multiple-choice"
        assert field.options == ["Mars", "Venus", "Earth"]
        assert field.quiz_config.correct_answer == "Mars"

    def test_existing_answer_survives_new_options(self, make_provider, make_client):
        provider = make_provider(
            "p",
            {
                "field-optimization": {
                    "results": [
                        {
                            "recommendedType": "multiple-choice",
                            "confidence": 0.9,
                            "suggestedOptions": ["Venus", "Mars", "Earth", "Jupiter"],
                        }
                    ]
                }
            },
        )
        fields = [
            FormField(
                id="q1",
                label="Which planet is red?",
                type="short-answer",
                quiz_config=QuizConfig(correct_answer="Mars"),
                order=0,
            )
        ]

        (field,) = asyncio.run(optimize_field_types(fields, "quiz", client=make_client(provider)))

        assert field.options == ["Venus", "Mars", "Earth", "Jupiter"]
        assert field.quiz_config.correct_answer == "Mars"

    def test_existing_answer_replaced_when_missing_from_new_options(self, make_provider, make_client):
        provider = make_provider(
            "p",
            {
                "field-optimization": {
                    "results": [
                        {
                            "recommendedType": "multiple-choice",
                            "confidence": 0.9,
                            "suggestedOptions": ["Venus", "Mars", "Earth"],
                            "suggestedCorrectAnswer": "Mars",
                        }
                    ]
                }
            },
        )
        fields = [
            FormField(
                id="q1",
                label="Which planet is red?",
                type="short-answer",
                quiz_config=QuizConfig(correct_answer="The red one", points=3),
                order=0,
            )
        ]

        (field,) = asyncio.run(optimize_field_types(fields, "quiz", client=make_client(provider)))

        assert field.quiz_config.correct_answer == "Mars"
        assert field.quiz_config.points == 3
