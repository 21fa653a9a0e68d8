"""
formgen: AI form generation pipeline.

Describe a form in plain language and get back a typed, validated form
schema. A request goes through content analysis, structure generation,
and (for non-trivial forms) field-type optimization and question
enhancement, with fallback across several LLM providers.

Simple Usage:
    from formgen import generate_form_quick

    form = await generate_form_quick("Contact form with name and email")

    for field in form.fields:
        print(field.order, field.type, field.label)

Advanced Usage:
    from formgen import FormGenerationPipeline, PipelineConfig, PipelineInput

    pipeline = FormGenerationPipeline(
        pre_validate_input=True,
        trace_to_console=True,  # See traces in the log
    )

    form = await pipeline.run(
        PipelineInput(prompt="Quiz about photosynthesis", question_count=5),
        PipelineConfig(tone="friendly"),
    )

    # camelCase dict for the form builder
    payload = form.to_dict()

Tracing:
    from formgen.tracing import setup_tracing

    # Log traces through the logging module
    setup_tracing(console=True, verbose=True)

    # Or write to file
    setup_tracing(file_path="traces.jsonl")
"""

from formgen.orchestrator import (
    FormGenerationPipeline,
    generate_form_high_quality,
    generate_form_quick,
    generate_quiz,
    generate_survey,
    merge_field_results,
    run_form_generation_pipeline,
)
from formgen.models import (
    ContentAnalysis,
    EnhancedQuestion,
    EnhancementOptions,
    FieldAnalysisInput,
    FieldAnalysisResult,
    FormField,
    FormMetadata,
    GeneratedForm,
    PipelineConfig,
    PipelineInput,
    PipelineTrace,
    QuestionInput,
    QuizConfig,
    QuizMode,
    ValidationAnomaly,
)
from formgen.errors import (
    FormGenError,
    JsonParseError,
    PipelineStageError,
    ProviderError,
    ProviderExhaustedError,
    StageSoftFailure,
)
from formgen.parsing import parse_json
from formgen.providers import Message, ProviderAdapter, ProviderClient
from formgen.stages import analyze_field_types, enhance_questions_with_ai
from formgen.tracing import (
    PipelineTelemetry,
    configure_logging,
    disable_tracing,
    enable_tracing,
    setup_tracing,
)

__all__ = [
    # Main interface
    "FormGenerationPipeline",
    "run_form_generation_pipeline",
    "generate_form_quick",
    "generate_form_high_quality",
    "generate_quiz",
    "generate_survey",
    "merge_field_results",
    # Models
    "ContentAnalysis",
    "EnhancedQuestion",
    "EnhancementOptions",
    "FieldAnalysisInput",
    "FieldAnalysisResult",
    "FormField",
    "FormMetadata",
    "GeneratedForm",
    "PipelineConfig",
    "PipelineInput",
    "PipelineTrace",
    "QuestionInput",
    "QuizConfig",
    "QuizMode",
    "ValidationAnomaly",
    # Errors
    "FormGenError",
    "JsonParseError",
    "PipelineStageError",
    "ProviderError",
    "ProviderExhaustedError",
    "StageSoftFailure",
    # Building blocks
    "Message",
    "ProviderAdapter",
    "ProviderClient",
    "parse_json",
    "analyze_field_types",
    "enhance_questions_with_ai",
    # Tracing
    "PipelineTelemetry",
    "configure_logging",
    "setup_tracing",
    "disable_tracing",
    "enable_tracing",
]

__version__ = "0.1.0"
