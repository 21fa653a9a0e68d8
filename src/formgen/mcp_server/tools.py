"""
MCP Tool definitions for formgen.

Wraps the pipeline presets and the field type catalog as MCP tools. Every
tool returns a JSON-serializable dict; failures come back as
{"error": ...} payloads instead of exceptions.
"""

import asyncio
import logging
from typing import Any, TYPE_CHECKING

from formgen.catalog import FIELD_TYPES
from formgen.errors import FormGenError, PipelineStageError
from formgen.models.pipeline import PipelineConfig, PipelineInput
from formgen.orchestrator import FormGenerationPipeline
from formgen.tracing import PipelineTelemetry, TelemetryEvent

if TYPE_CHECKING:
    from mcp.server.session import ServerSession

logger = logging.getLogger("formgen-mcp")

_pending_notifications: set[asyncio.Task] = set()


def _session_telemetry(session: "ServerSession | None") -> PipelineTelemetry | None:
    """Telemetry that forwards stage events to the client as log notifications."""
    if session is None:
        return None

    def forward(event: TelemetryEvent) -> None:
        task = asyncio.get_running_loop().create_task(
            session.send_log_message(level="info", data={"type": "pipeline", **event.to_dict()})
        )
        _pending_notifications.add(task)
        task.add_done_callback(_pending_notifications.discard)

    return PipelineTelemetry(listener=forward)


def _error_payload(error: Exception) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": str(error)}
    if isinstance(error, PipelineStageError):
        payload["stage"] = error.stage
        if error.failures:
            payload["providers"] = [str(f) for f in error.failures]
    return payload


async def _run(
    pipeline_input: PipelineInput,
    config: PipelineConfig,
    session: "ServerSession | None" = None,
) -> dict[str, Any]:
    pipeline = FormGenerationPipeline(telemetry=_session_telemetry(session), pre_validate_input=True)
    try:
        form = await pipeline.run(pipeline_input, config)
    except (FormGenError, ValueError) as e:
        logger.error("Form generation failed: %s", e)
        return _error_payload(e)
    return form.to_dict()


async def mcp_generate_form(
    prompt: str,
    question_count: int | None = None,
    reference_data: str | None = None,
    user_context: str | None = None,
    tone: str | None = None,
    mode: str = "full",
    session: "ServerSession | None" = None,
) -> dict[str, Any]:
    """
    Generate a form from a natural-language description.

    Args:
        prompt: What the form is for.
        question_count: Desired number of fields (advisory).
        reference_data: Source document text for quizzes.
        user_context: Extra context about the audience or use.
        tone: professional, friendly, casual or formal.
        mode: "full" runs every stage, "quick" skips question enhancement.

    Returns:
        The generated form (camelCase keys), or {"error": ...}.
    """
    try:
        pipeline_input = PipelineInput(
            prompt=prompt,
            question_count=question_count,
            reference_data=reference_data,
            user_context=user_context,
        )
        config = PipelineConfig(tone=tone, skip_question_enhancement=(mode == "quick"))
    except ValueError as e:
        return _error_payload(e)
    return await _run(pipeline_input, config, session)


async def mcp_generate_quiz(
    topic: str,
    question_count: int = 10,
    reference_data: str | None = None,
    session: "ServerSession | None" = None,
) -> dict[str, Any]:
    """Generate a scored quiz about a topic."""
    try:
        pipeline_input = PipelineInput(
            prompt=f"Create a quiz about {topic}",
            question_count=question_count,
            reference_data=reference_data,
        )
    except ValueError as e:
        return _error_payload(e)
    return await _run(pipeline_input, PipelineConfig(), session)


async def mcp_generate_survey(
    topic: str,
    question_count: int = 10,
    session: "ServerSession | None" = None,
) -> dict[str, Any]:
    """Generate a survey about a topic."""
    try:
        pipeline_input = PipelineInput(prompt=f"Create a survey about {topic}", question_count=question_count)
    except ValueError as e:
        return _error_payload(e)
    return await _run(pipeline_input, PipelineConfig(), session)


def mcp_list_field_types(category: str | None = None) -> dict[str, Any]:
    """List the field type catalog, optionally for one category."""
    types = [
        {
            "type": key,
            "category": spec.category,
            "description": spec.description,
            "useWhen": spec.use_when,
            "isInput": spec.is_input,
        }
        for key, spec in FIELD_TYPES.items()
        if category is None or spec.category == category
    ]
    return {"fieldTypes": types, "count": len(types)}


async def call_mcp_tool(
    name: str,
    arguments: dict[str, Any],
    session: "ServerSession | None" = None,
) -> dict[str, Any]:
    """Dispatch one MCP tool call by name."""
    if name == "generate_form":
        if not arguments.get("prompt"):
            return {"error": "prompt is required"}
        return await mcp_generate_form(
            prompt=arguments["prompt"],
            question_count=arguments.get("question_count"),
            reference_data=arguments.get("reference_data"),
            user_context=arguments.get("user_context"),
            tone=arguments.get("tone"),
            mode=arguments.get("mode", "full"),
            session=session,
        )
    if name == "generate_quiz":
        if not arguments.get("topic"):
            return {"error": "topic is required"}
        return await mcp_generate_quiz(
            topic=arguments["topic"],
            question_count=arguments.get("question_count", 10),
            reference_data=arguments.get("reference_data"),
            session=session,
        )
    if name == "generate_survey":
        if not arguments.get("topic"):
            return {"error": "topic is required"}
        return await mcp_generate_survey(
            topic=arguments["topic"],
            question_count=arguments.get("question_count", 10),
            session=session,
        )
    if name == "list_field_types":
        return mcp_list_field_types(arguments.get("category"))
    return {"error": f"Unknown tool: {name}"}


_QUESTION_COUNT_SCHEMA = {
    "type": "integer",
    "minimum": 1,
    "maximum": 120,
    "description": "Desired number of questions (advisory)",
}


def get_mcp_tools() -> list[dict]:
    """
    Get MCP tool definitions for registration with MCP server.

    Returns list of tool schemas compatible with MCP protocol.
    """
    return [
        {
            "name": "generate_form",
            "description": """
Generate a complete, typed form from a natural-language description.

WHEN TO USE:
- The user describes a form, survey, quiz, registration or feedback page
- The user wants fields generated from a document (pass reference_data)

RETURNS:
A JSON form with title, description, fields (id, label, type, options,
quizConfig, order) and metadata describing the pipeline run.
""".strip(),
            "inputSchema": {
                "type": "object",
                "properties": {
                    "prompt": {"type": "string", "description": "Description of the form to build"},
                    "question_count": _QUESTION_COUNT_SCHEMA,
                    "reference_data": {
                        "type": "string",
                        "description": "Source material to base questions on (truncated to a prefix)",
                    },
                    "user_context": {"type": "string", "description": "Extra context about audience or use"},
                    "tone": {
                        "type": "string",
                        "enum": ["professional", "friendly", "casual", "formal"],
                        "description": "Tone of the question wording",
                    },
                    "mode": {
                        "type": "string",
                        "enum": ["full", "quick"],
                        "default": "full",
                        "description": "quick skips question enhancement",
                    },
                },
                "required": ["prompt"],
            },
        },
        {
            "name": "generate_quiz",
            "description": "Generate a scored multiple-choice quiz about a topic.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "topic": {"type": "string", "description": "Quiz topic"},
                    "question_count": {**_QUESTION_COUNT_SCHEMA, "default": 10},
                    "reference_data": {"type": "string", "description": "Source material for the questions"},
                },
                "required": ["topic"],
            },
        },
        {
            "name": "generate_survey",
            "description": "Generate a survey about a topic.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "topic": {"type": "string", "description": "Survey topic"},
                    "question_count": {**_QUESTION_COUNT_SCHEMA, "default": 10},
                },
                "required": ["topic"],
            },
        },
        {
            "name": "list_field_types",
            "description": "List the supported field types with guidance on when to use each.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "category": {"type": "string", "description": "Only list types in this category"},
                },
            },
        },
    ]
