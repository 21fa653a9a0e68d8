"""
Stage 1: content analysis.

Classifies the user's request (form type, domain, tone, complexity) with a
fast model. Every attribute of the result has a safe default.
"""

import logging

from formgen.models.pipeline import ContentAnalysis
from formgen.parsing import parse_model
from formgen.providers.base import Message
from formgen.providers.client import ProviderClient, get_provider_client
from formgen.stages.instructions import CONTENT_ANALYSIS_INSTRUCTIONS, build_content_analysis_prompt

logger = logging.getLogger(__name__)


async def analyze_content(
    prompt: str,
    user_context: str | None = None,
    client: ProviderClient | None = None,
) -> ContentAnalysis:
    """
    Analyze a form request.

    Raises:
        ProviderExhaustedError: No provider could answer.
        JsonParseError: The answer was not usable JSON.
    """
    client = client or get_provider_client()
    response = await client.complete(
        [
            Message.system(CONTENT_ANALYSIS_INSTRUCTIONS),
            Message.user(build_content_analysis_prompt(prompt, user_context)),
        ],
        purpose="content-analysis",
        temperature=0.3,
        max_tokens=1500,
    )

    analysis = parse_model(response.content, ContentAnalysis, "analyze_content")
    logger.info(
        "Content analysis: form_type=%s quiz=%s survey=%s domain=%s tone=%s complexity=%s confidence=%.2f",
        analysis.form_type,
        analysis.is_quiz,
        analysis.is_survey,
        analysis.domain,
        analysis.tone,
        analysis.complexity,
        analysis.confidence,
    )
    return analysis
