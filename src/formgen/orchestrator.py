"""
Form Generation Pipeline.

This is the main entry point for formgen. Give it a free-text prompt,
get back a typed, validated form:

    1. content analysis     (always)
    2. structure generation (always, depends on 1)
    3. field optimization   (optional, depends on 2)
    4. question enhancement (optional, depends on 2)

Stages 3 and 4 run concurrently when both are active and merge field by
field afterwards. A failure in either of them leaves that branch's fields
unchanged instead of failing the run.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from formgen.config import FormGenConfig, get_config
from formgen.errors import FormGenError, PipelineStageError, StageSoftFailure
from formgen.guardrails import check_field_ordering, check_prompt, enforce_quiz_integrity
from formgen.models.pipeline import (
    STAGE_CONTENT_ANALYSIS,
    STAGE_FIELD_OPTIMIZATION,
    STAGE_FORM_GENERATION,
    STAGE_QUESTION_ENHANCEMENT,
    ContentAnalysis,
    FormField,
    FormMetadata,
    GeneratedForm,
    PipelineConfig,
    PipelineInput,
    PipelineTrace,
    QuizMode,
    Tone,
    ValidationAnomaly,
)
from formgen.providers.client import ProviderClient, get_provider_client, record_models_used
from formgen.providers.routing import ROUTING, estimate_pipeline_latency
from formgen.stages.content_analysis import analyze_content
from formgen.stages.field_analyzer import optimize_field_types
from formgen.stages.question_enhancer import enhance_form_fields
from formgen.stages.structure_generation import generate_form_structure
from formgen.tracing import PipelineTelemetry, setup_tracing

logger = logging.getLogger(__name__)

SKIP_SIMPLE_FORM = "simple form"
SKIP_DISABLED = "disabled by config"
SKIP_LATENCY_BUDGET = "latency budget exceeded"


@dataclass
class RunState:
    """Bookkeeping for one pipeline run."""

    started: float = field(default_factory=time.perf_counter)
    stages: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    models: list[str] = field(default_factory=list)
    anomalies: list[ValidationAnomaly] = field(default_factory=list)

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)

    def add_models(self, models: Sequence[str]) -> None:
        for model in models:
            if model not in self.models:
                self.models.append(model)


def _changed(value, original) -> bool:
    return value is not None and value != original


def merge_field_results(
    original: Sequence[FormField],
    optimized: Sequence[FormField],
    enhanced: Sequence[FormField],
) -> list[FormField]:
    """
    Merge the two optional branches field by field.

    A branch's value only counts when it differs from the original:
    the optimized type wins, the enhanced label wins, and help text,
    placeholder and options prefer enhancement, then optimization. The
    quiz config comes from whichever side set a correct answer.
    """
    optimized_by_id = {f.id: f for f in optimized}
    enhanced_by_id = {f.id: f for f in enhanced}

    merged: list[FormField] = []
    for base in original:
        opt = optimized_by_id.get(base.id, base)
        enh = enhanced_by_id.get(base.id, base)

        updates: dict = {}
        if opt.type != base.type:
            updates["type"] = opt.type
        if _changed(enh.label, base.label) and enh.label:
            updates["label"] = enh.label

        for attr in ("help_text", "placeholder", "options"):
            original_value = getattr(base, attr)
            for candidate in (enh, opt):
                value = getattr(candidate, attr)
                if _changed(value, original_value):
                    updates[attr] = value
                    break

        for candidate in (opt, enh):
            if candidate.quiz_config is not None and candidate.quiz_config.has_answer:
                updates["quiz_config"] = candidate.quiz_config
                break

        merged.append(base.model_copy(update=updates, deep=True))
    return merged


class FormGenerationPipeline:
    """
    Multi-stage AI form generator.

    Usage:
        pipeline = FormGenerationPipeline()

        form = await pipeline.run(
            PipelineInput(prompt="Create a 3-question quiz about the solar system")
        )

        for field in form.fields:
            print(field.order, field.type, field.label)
    """

    def __init__(
        self,
        client: ProviderClient | None = None,
        telemetry: PipelineTelemetry | None = None,
        pre_validate_input: bool = False,
        enable_tracing: bool | None = None,
        trace_to_console: bool = False,
        trace_verbose: bool = False,
        trace_file: str | None = None,
        config: FormGenConfig | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            client: Provider client. If None, uses the shared client built from config.
            telemetry: Stage event sink. If None, logs (and traces when enabled).
            pre_validate_input: Whether to run the prompt guardrail before any API call.
            enable_tracing: Whether to enable tracing. If None, uses config.enable_tracing.
            trace_to_console: Whether to log traces through the logging module.
            trace_verbose: Whether to log span details too.
            trace_file: Optional file path to write traces to.
            config: Settings. If None, uses the global config.
        """
        self.config = config or get_config()
        self._client = client
        self.pre_validate_input = pre_validate_input
        self.enable_tracing = self.config.enable_tracing if enable_tracing is None else enable_tracing

        setup_tracing(
            enabled=self.enable_tracing,
            console=trace_to_console,
            verbose=trace_verbose,
            file_path=trace_file,
        )
        self.telemetry = telemetry or PipelineTelemetry(tracing=self.enable_tracing)

    @property
    def client(self) -> ProviderClient:
        if self._client is None:
            self._client = get_provider_client()
        return self._client

    async def run(
        self,
        pipeline_input: PipelineInput,
        config: PipelineConfig | None = None,
    ) -> GeneratedForm:
        """
        Run the full pipeline for one input.

        Args:
            pipeline_input: Prompt plus optional context, question count and reference material.
            config: Stage switches, latency budget and tone override.

        Returns:
            GeneratedForm with fields sorted by order and pipeline metadata.

        Raises:
            ValueError: The prompt failed the input guardrail (pre_validate_input only).
            PipelineStageError: Content analysis or structure generation failed.
        """
        config = config or PipelineConfig()
        if self.pre_validate_input:
            check_prompt(pipeline_input.prompt)

        state = RunState()
        with self.telemetry.run(
            f"{self.config.trace_name_prefix}-pipeline",
            metadata={"question_count": str(pipeline_input.question_count or "")},
        ):
            analysis = await self._required_stage(
                state,
                STAGE_CONTENT_ANALYSIS,
                lambda: analyze_content(pipeline_input.prompt, pipeline_input.user_context, client=self.client),
            )
            structure = await self._required_stage(
                state,
                STAGE_FORM_GENERATION,
                lambda: generate_form_structure(
                    pipeline_input.prompt,
                    analysis,
                    question_count=pipeline_input.question_count,
                    reference_data=pipeline_input.reference_data,
                    client=self.client,
                    config=self.config,
                ),
            )

            skip_optimization, skip_enhancement = self._skip_policy(analysis, config, state)
            fields = await self._optional_stages(
                state, structure.fields, analysis, config, skip_optimization, skip_enhancement
            )

            fields, anomalies = enforce_quiz_integrity(fields, is_quiz=analysis.is_quiz)
            state.anomalies.extend(anomalies)
            for anomaly in anomalies:
                logger.warning("Corrected %s on field %s: %s", anomaly.kind, anomaly.field_id, anomaly.detail)

            fields = sorted(fields, key=lambda f: f.order)
            ordering = check_field_ordering(fields)
            for error in ordering.errors:
                state.anomalies.append(ValidationAnomaly(kind="ordering", detail=error))
                logger.warning("Field ordering problem: %s", error)

            quiz_mode = structure.quiz_mode
            if analysis.is_quiz and quiz_mode is None:
                quiz_mode = QuizMode()

        trace = PipelineTrace(
            stages=state.stages,
            total_latency_ms=state.elapsed_ms,
            models_used=state.models,
            skipped_stages=state.skipped,
            failed_stages=state.failed,
            anomalies=state.anomalies,
        )
        logger.info(
            "Pipeline completed in %dms: stages=%s skipped=%s failed=%s fields=%d",
            trace.total_latency_ms,
            trace.stages,
            trace.skipped_stages,
            trace.failed_stages,
            len(fields),
        )

        return GeneratedForm(
            title=structure.title,
            description=structure.description,
            fields=fields,
            quiz_mode=quiz_mode,
            metadata=FormMetadata(
                form_type=analysis.form_type,
                domain=analysis.domain,
                tone=config.tone or analysis.tone,
                complexity=analysis.complexity,
                is_quiz=analysis.is_quiz,
                is_survey=analysis.is_survey,
                pipeline=trace,
            ),
        )

    async def _required_stage(self, state: RunState, stage: str, step: Callable[[], Awaitable]):
        """Run a stage whose failure fails the run."""
        try:
            with self.telemetry.stage(stage) as record, record_models_used() as used:
                result = await step()
                record.models = list(used)
        except FormGenError as e:
            raise PipelineStageError(stage, e) from e
        state.stages.append(stage)
        state.add_models(record.models)
        return result

    async def _optional_stage(
        self,
        state: RunState,
        stage: str,
        step: Callable[[], Awaitable[list[FormField]]],
        fallback: Sequence[FormField],
    ) -> list[FormField]:
        """Run a stage whose failure leaves `fallback` unchanged."""
        state.stages.append(stage)
        try:
            with self.telemetry.stage(stage) as record, record_models_used() as used:
                result = await step()
                record.models = list(used)
        except Exception as e:
            failure = StageSoftFailure(stage, e)
            logger.warning("%s", failure)
            state.failed.append(stage)
            return list(fallback)
        state.add_models(record.models)
        return result

    def _estimate_optional_ms(self, config: PipelineConfig) -> int:
        """Expected latency of both optional stages on the first provider (0 if it has no profile)."""
        providers = self.client.available_providers()
        if not providers or providers[0] not in ROUTING:
            return 0
        parallel = config.parallel_optimization
        return estimate_pipeline_latency(
            [(STAGE_FIELD_OPTIMIZATION, parallel), (STAGE_QUESTION_ENHANCEMENT, parallel)],
            provider=providers[0],
        )

    def _skip_policy(
        self, analysis: ContentAnalysis, config: PipelineConfig, state: RunState
    ) -> tuple[bool, bool]:
        """Decide which optional stages run. Records every skip."""
        reasons: dict[str, str] = {}

        if analysis.is_simple:
            reasons[STAGE_FIELD_OPTIMIZATION] = SKIP_SIMPLE_FORM
            reasons[STAGE_QUESTION_ENHANCEMENT] = SKIP_SIMPLE_FORM
        if config.skip_field_optimization:
            reasons.setdefault(STAGE_FIELD_OPTIMIZATION, SKIP_DISABLED)
        if config.skip_question_enhancement:
            reasons.setdefault(STAGE_QUESTION_ENHANCEMENT, SKIP_DISABLED)

        budget = config.max_latency_ms if config.max_latency_ms is not None else self.config.max_latency_ms
        if budget and not analysis.is_quiz and not analysis.is_survey:
            projected = state.elapsed_ms + self._estimate_optional_ms(config)
            if projected > budget:
                logger.info("Projected %dms exceeds latency budget of %dms", projected, budget)
                reasons.setdefault(STAGE_FIELD_OPTIMIZATION, SKIP_LATENCY_BUDGET)
                reasons.setdefault(STAGE_QUESTION_ENHANCEMENT, SKIP_LATENCY_BUDGET)

        for stage in (STAGE_FIELD_OPTIMIZATION, STAGE_QUESTION_ENHANCEMENT):
            if stage in reasons:
                state.skipped.append(stage)
                self.telemetry.stage_skip(stage, reasons[stage])

        return STAGE_FIELD_OPTIMIZATION in reasons, STAGE_QUESTION_ENHANCEMENT in reasons

    async def _optional_stages(
        self,
        state: RunState,
        raw_fields: list[FormField],
        analysis: ContentAnalysis,
        config: PipelineConfig,
        skip_optimization: bool,
        skip_enhancement: bool,
    ) -> list[FormField]:
        tone: Tone | None = config.tone

        def optimize(fields: Sequence[FormField]) -> Callable[[], Awaitable[list[FormField]]]:
            return lambda: optimize_field_types(fields, analysis.form_context, client=self.client)

        def enhance(fields: Sequence[FormField]) -> Callable[[], Awaitable[list[FormField]]]:
            return lambda: enhance_form_fields(fields, analysis, tone=tone, client=self.client)

        if config.parallel_optimization and not skip_optimization and not skip_enhancement:
            optimized, enhanced = await asyncio.gather(
                self._optional_stage(state, STAGE_FIELD_OPTIMIZATION, optimize(raw_fields), raw_fields),
                self._optional_stage(state, STAGE_QUESTION_ENHANCEMENT, enhance(raw_fields), raw_fields),
            )
            merged = merge_field_results(raw_fields, optimized, enhanced)
            logger.info(
                "Parallel stages merged: %d type changes, %d label changes",
                sum(1 for m, r in zip(merged, raw_fields) if m.type != r.type),
                sum(1 for m, r in zip(merged, raw_fields) if m.label != r.label),
            )
            return merged

        fields = raw_fields
        if not skip_optimization:
            fields = await self._optional_stage(state, STAGE_FIELD_OPTIMIZATION, optimize(fields), fields)
        if not skip_enhancement:
            fields = await self._optional_stage(state, STAGE_QUESTION_ENHANCEMENT, enhance(fields), fields)
        return fields


async def run_form_generation_pipeline(
    pipeline_input: PipelineInput,
    config: PipelineConfig | None = None,
    client: ProviderClient | None = None,
    pre_validate_input: bool = False,
) -> GeneratedForm:
    """
    Convenience function to run the pipeline once.

    Example:
        >>> from formgen import PipelineInput, run_form_generation_pipeline
        >>> form = await run_form_generation_pipeline(
        ...     PipelineInput(prompt="Event registration form", question_count=6)
        ... )
    """
    pipeline = FormGenerationPipeline(client=client, pre_validate_input=pre_validate_input)
    return await pipeline.run(pipeline_input, config)


async def generate_form_quick(
    prompt: str,
    question_count: int | None = None,
    client: ProviderClient | None = None,
) -> GeneratedForm:
    """Fast preset: field optimization runs, question enhancement is skipped."""
    return await run_form_generation_pipeline(
        PipelineInput(prompt=prompt, question_count=question_count),
        PipelineConfig(skip_question_enhancement=True),
        client=client,
    )


async def generate_form_high_quality(
    prompt: str,
    question_count: int | None = None,
    reference_data: str | None = None,
    tone: Tone | None = None,
    client: ProviderClient | None = None,
) -> GeneratedForm:
    """Full pipeline with an optional tone override."""
    return await run_form_generation_pipeline(
        PipelineInput(prompt=prompt, question_count=question_count, reference_data=reference_data),
        PipelineConfig(tone=tone),
        client=client,
    )


async def generate_quiz(
    topic: str,
    question_count: int = 10,
    reference_data: str | None = None,
    client: ProviderClient | None = None,
) -> GeneratedForm:
    """Generate a quiz about a topic, optionally from reference material."""
    return await run_form_generation_pipeline(
        PipelineInput(
            prompt=f"Create a quiz about {topic}",
            question_count=question_count,
            reference_data=reference_data,
        ),
        PipelineConfig(),
        client=client,
    )


async def generate_survey(
    topic: str,
    question_count: int = 10,
    client: ProviderClient | None = None,
) -> GeneratedForm:
    """Generate a survey about a topic."""
    return await run_form_generation_pipeline(
        PipelineInput(prompt=f"Create a survey about {topic}", question_count=question_count),
        PipelineConfig(),
        client=client,
    )
