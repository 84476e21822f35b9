"""Roundtable state machine: drives every stage in order and reports through events."""

import logging
import time
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from config.config_loader import StagesConfig
from roundtable.breakdown import generate_hashtags
from roundtable.client import CompletionClient
from roundtable.context import build_context
from roundtable.debate import DEFAULT_PAIRINGS, DebatePairing, run_debate
from roundtable.events import EventEmitter
from roundtable.models import RoundtableInput, RunResult
from roundtable.round1 import run_round1
from roundtable.shots import generate_shot_list, parse_shot_list
from roundtable.synthesis import synthesize

logger = logging.getLogger(__name__)

SendEvent = Callable[[str, dict[str, Any]], None]


class Stage(str, Enum):
    INITIALIZATION = "initialization"
    ROUND1 = "round1"
    ROUND2 = "round2"
    SYNTHESIS = "synthesis"
    SHOTS = "shots"
    BREAKDOWN = "breakdown"
    COMPLETE = "complete"


_STAGE_MESSAGES = {
    Stage.INITIALIZATION: "Creative team assembling...",
    Stage.ROUND1: "Round 1: each expert weighs in...",
    Stage.ROUND2: "Round 2: Creative debate emerging...",
    Stage.SYNTHESIS: "Synthesizing team insights into final prompt...",
    Stage.SHOTS: "Generating suggested shot list...",
    Stage.BREAKDOWN: "Preparing hashtags...",
    Stage.COMPLETE: "Roundtable complete.",
}


class RoundtablePipeline:
    """One configured orchestrator. Holds no per-run state, so runs stay independent."""

    def __init__(
        self,
        client: CompletionClient,
        stages: StagesConfig,
        pairings: Sequence[DebatePairing] = DEFAULT_PAIRINGS,
    ) -> None:
        self._client = client
        self._stages = stages
        self._pairings = tuple(pairings)

    def _enter(self, stage: Stage, emitter: EventEmitter) -> None:
        logger.info("Stage: %s", stage.value)
        emitter.emit("status", {"stage": stage.value, "message": _STAGE_MESSAGES[stage]})

    async def run(self, roundtable_input: RoundtableInput, emitter: EventEmitter) -> RunResult:
        """Run every stage in order and build the RunResult.

        Raises:
            ProviderError: If synthesis or the shot list fails after retries.
            RuntimeError: If synthesis or the shot list comes back empty.
        """
        start = time.monotonic()

        self._enter(Stage.INITIALIZATION, emitter)
        context = build_context(roundtable_input)
        logger.debug("Shared context: %d chars", len(context))

        self._enter(Stage.ROUND1, emitter)
        responses = await run_round1(roundtable_input, context, self._client, self._stages, emitter)

        self._enter(Stage.ROUND2, emitter)
        debate = await run_debate(
            roundtable_input, responses, self._client, self._stages.debate, emitter, self._pairings,
        )

        self._enter(Stage.SYNTHESIS, emitter)
        final_prompt = await synthesize(
            roundtable_input, responses, debate, self._client, self._stages.synthesis, emitter,
        )

        self._enter(Stage.SHOTS, emitter)
        suggested_shots = await generate_shot_list(
            final_prompt, roundtable_input, self._client, self._stages.shots, emitter,
        )

        self._enter(Stage.BREAKDOWN, emitter)
        hashtags = await generate_hashtags(
            final_prompt, roundtable_input, self._client, self._stages.hashtags, emitter,
        )

        result = RunResult(
            final_prompt=final_prompt,
            character_count=len(final_prompt),
            suggested_shots=suggested_shots,
            agent_responses=tuple(responses),
            hashtags=tuple(hashtags),
            debate=tuple(debate),
            shots=tuple(parse_shot_list(suggested_shots)),
        )

        self._enter(Stage.COMPLETE, emitter)
        logger.info(
            "Roundtable finished in %.1fs: %d chars, %d shots, %d hashtags",
            time.monotonic() - start, result.character_count, len(result.shots), len(result.hashtags),
        )
        return result


async def run_roundtable(
    roundtable_input: RoundtableInput,
    send_event: SendEvent | None = None,
    *,
    client: CompletionClient,
    stages: StagesConfig,
    pairings: Sequence[DebatePairing] = DEFAULT_PAIRINGS,
    emitter: EventEmitter | None = None,
) -> RunResult:
    """Run one roundtable and return its result.

    Args:
        roundtable_input: Immutable run configuration.
        send_event: Optional sink called as send_event(type, data) for every event.
        client: Completion client shared by all stages of this run.
        stages: Per-stage temperature/max_tokens.
        pairings: Round 2 challenger/responder pairs.
        emitter: Optional emitter to report through, e.g. one whose stream()
            is already being consumed. Closed when the run ends.

    Raises:
        ProviderError / RuntimeError: On a stage-critical failure.
    """
    emitter = emitter or EventEmitter()
    if send_event is not None:
        emitter.subscribe(lambda event: send_event(event.type, event.data))
    try:
        return await RoundtablePipeline(client, stages, pairings).run(roundtable_input, emitter)
    finally:
        emitter.close()
