"""Pydantic models for formgen."""

from formgen.models.analysis import FieldAnalysisInput, FieldAnalysisResult, QuizOptionsResult
from formgen.models.base import CamelModel
from formgen.models.enhancement import (
    EnhancedQuestion,
    EnhancedQuizQuestion,
    EnhancedSurveyQuestion,
    EnhancementOptions,
    QuestionInput,
    QuizQuestionInput,
    ScaleLabels,
    SurveyQuestionInput,
)
from formgen.models.pipeline import (
    STAGE_CONTENT_ANALYSIS,
    STAGE_FIELD_OPTIMIZATION,
    STAGE_FORM_GENERATION,
    STAGE_QUESTION_ENHANCEMENT,
    ContentAnalysis,
    FormField,
    FormMetadata,
    FormStructure,
    GeneratedForm,
    PipelineConfig,
    PipelineInput,
    PipelineTrace,
    QuizConfig,
    QuizMode,
    Tone,
    ValidationAnomaly,
)

__all__ = [
    "CamelModel",
    "FieldAnalysisInput",
    "FieldAnalysisResult",
    "QuizOptionsResult",
    "EnhancedQuestion",
    "EnhancedQuizQuestion",
    "EnhancedSurveyQuestion",
    "EnhancementOptions",
    "QuestionInput",
    "QuizQuestionInput",
    "ScaleLabels",
    "SurveyQuestionInput",
    "STAGE_CONTENT_ANALYSIS",
    "STAGE_FIELD_OPTIMIZATION",
    "STAGE_FORM_GENERATION",
    "STAGE_QUESTION_ENHANCEMENT",
    "ContentAnalysis",
    "FormField",
    "FormMetadata",
    "FormStructure",
    "GeneratedForm",
    "PipelineConfig",
    "PipelineInput",
    "PipelineTrace",
    "QuizConfig",
    "QuizMode",
    "Tone",
    "ValidationAnomaly",
]
