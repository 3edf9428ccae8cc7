"""
Dialectical Coordinator
Two providers analyze, cross-review each other, then the primary synthesizes.
"""
import asyncio
import logging
from typing import Awaitable, List, Optional, Sequence

from intelligence.llm.registry import ProviderKey, ProviderRegistry
from intelligence.prompts import compose_with_context
from models.schemas import PROVIDER_DISPLAY_NAMES, AIResponse, DialecticalResult, ProviderId
from utils.exceptions import InsufficientProvidersError


logger = logging.getLogger(__name__)


def cross_review_prompt(other_output: str, other_provider: ProviderId) -> str:
    return (
        f"Review and critique this analysis from {PROVIDER_DISPLAY_NAMES[other_provider]}. "
        "Identify strengths, weaknesses, missing points, and alternative perspectives:\n\n"
        f"{other_output}"
    )


def synthesis_prompt(
    prompt: str,
    primary_id: ProviderId,
    secondary_id: ProviderId,
    primary_analysis: str,
    secondary_analysis: str,
    primary_review: str,
    secondary_review: str,
) -> str:
    primary_name = PROVIDER_DISPLAY_NAMES[primary_id]
    secondary_name = PROVIDER_DISPLAY_NAMES[secondary_id]
    return f"""You have received analyses from two AI models and their cross-reviews.

ORIGINAL PROMPT: {prompt}

MODEL A ({primary_name}) ANALYSIS:
{primary_analysis}

MODEL B ({secondary_name}) ANALYSIS:
{secondary_analysis}

MODEL A's REVIEW OF MODEL B:
{primary_review}

MODEL B's REVIEW OF MODEL A:
{secondary_review}

TASK: Synthesize both analyses, incorporating the cross-validation feedback. Create a comprehensive, balanced analysis that:
1. Combines the strongest elements from both models
2. Resolves any contradictions
3. Addresses gaps identified by each model
4. Provides a unified, authoritative conclusion

Format as a professional research output."""


async def _both(first: Awaitable[AIResponse], second: Awaitable[AIResponse]) -> List[AIResponse]:
    """Await two calls together; the first failure cancels the other call"""
    tasks = [asyncio.ensure_future(first), asyncio.ensure_future(second)]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class DialecticalCoordinator:
    """Runs the analyze / cross-review / synthesize protocol over a registry"""

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    async def run(
        self,
        primary_id: ProviderKey,
        secondary_id: Optional[ProviderKey],
        prompt: str,
        previous_outputs: Sequence[str] = (),
    ) -> DialecticalResult:
        """
        Execute one dialectical round.

        Both stages with two calls run concurrently and complete only when
        both calls return. Any provider error aborts the round and cancels
        the call still in flight.

        Raises:
            InsufficientProvidersError: no secondary provider (before any call)
        """
        if secondary_id is None:
            raise InsufficientProvidersError("Dialectical mode requires two providers")
        primary = ProviderId(primary_id)
        secondary = ProviderId(secondary_id)

        analysis_prompt = compose_with_context(prompt, previous_outputs)
        logger.info(f"Dialectical analysis: {primary.value} vs {secondary.value}")

        primary_analysis, secondary_analysis = await _both(
            self.registry.send(primary, analysis_prompt),
            self.registry.send(secondary, analysis_prompt),
        )

        primary_review, secondary_review = await _both(
            self.registry.send(primary, cross_review_prompt(secondary_analysis.content, secondary)),
            self.registry.send(secondary, cross_review_prompt(primary_analysis.content, primary)),
        )

        synthesis = await self.registry.send(
            primary,
            synthesis_prompt(
                prompt,
                primary,
                secondary,
                primary_analysis.content,
                secondary_analysis.content,
                primary_review.content,
                secondary_review.content,
            ),
        )

        return DialecticalResult(
            primary=primary_analysis,
            secondary=secondary_analysis,
            primary_review=primary_review,
            secondary_review=secondary_review,
            synthesis=synthesis.content,
            synthesis_provider=synthesis.provider,
        )
