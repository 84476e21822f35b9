"""Round 1: sequential conversational pass, then concurrent technical pass."""

import asyncio
import logging
import re
from collections.abc import Sequence

from config.config_loader import StagesConfig
from roundtable.client import CompletionClient
from roundtable.events import EventEmitter
from roundtable.models import CompletionRequest, Participant, ParticipantResponse, RoundtableInput
from roundtable.participants import ROSTER, build_conversational_messages, build_technical_messages
from roundtable.providers.base import ProviderError

logger = logging.getLogger(__name__)

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Split text into sentence-sized chunks. Never returns an empty list."""
    sentences = [s.strip() for s in _SENTENCE_END.split(text) if s.strip()]
    return sentences or [text.strip()]


async def _conversational_turn(
    participant: Participant,
    roundtable_input: RoundtableInput,
    context: str,
    previous: Sequence[tuple[Participant, str]],
    client: CompletionClient,
    stages: StagesConfig,
    emitter: EventEmitter,
) -> tuple[str, str | None]:
    """Run one participant's conversational turn. Never raises on provider failure.

    Returns (text, error). On failure text is "" and error carries the message.
    """
    emitter.emit("typing_start", {
        "agent": participant.id,
        "name": participant.name,
        "emoji": participant.emoji,
        "message": f"{participant.emoji} {participant.name} is typing...",
    })

    request = CompletionRequest(
        messages=build_conversational_messages(participant, roundtable_input, context, previous),
        stream=False,
        temperature=stages.conversational.temperature,
        max_tokens=stages.conversational.max_tokens,
    )
    try:
        text = await client.complete(request)
        if not text.strip():
            raise ProviderError(client.provider.name(), "Blank conversational reply")
    except Exception as exc:
        logger.warning("Conversational turn failed for %s: %s", participant.id, exc)
        emitter.emit("agent_error", {"agent": participant.id, "name": participant.name, "error": str(exc)})
        emitter.emit("typing_stop", {"agent": participant.id, "name": participant.name})
        emitter.emit("message_complete", {
            "agent": participant.id,
            "name": participant.name,
            "emoji": participant.emoji,
            "conversationalResponse": "",
            "error": str(exc),
        })
        return "", str(exc)

    for sentence in split_sentences(text):
        emitter.emit("message_chunk", {
            "agent": participant.id,
            "name": participant.name,
            "emoji": participant.emoji,
            "content": sentence,
        })
    emitter.emit("message_complete", {
        "agent": participant.id,
        "name": participant.name,
        "emoji": participant.emoji,
        "conversationalResponse": text,
    })
    emitter.emit("typing_stop", {"agent": participant.id, "name": participant.name})
    return text, None


async def _technical_turn(
    participant: Participant,
    roundtable_input: RoundtableInput,
    context: str,
    conversation: Sequence[tuple[Participant, str]],
    client: CompletionClient,
    stages: StagesConfig,
    emitter: EventEmitter,
) -> tuple[str, str | None]:
    request = CompletionRequest(
        messages=build_technical_messages(participant, roundtable_input, context, conversation),
        stream=False,
        temperature=stages.technical.temperature,
        max_tokens=stages.technical.max_tokens,
    )
    try:
        text = await client.complete(request)
        if not text.strip():
            raise ProviderError(client.provider.name(), "Blank technical reply")
        return text, None
    except Exception as exc:
        logger.warning("Technical pass failed for %s: %s", participant.id, exc)
        emitter.emit("agent_error", {
            "agent": participant.id,
            "name": participant.name,
            "error": str(exc),
            "phase": "technical",
        })
        return "", str(exc)


async def run_round1(
    roundtable_input: RoundtableInput,
    context: str,
    client: CompletionClient,
    stages: StagesConfig,
    emitter: EventEmitter,
    roster: Sequence[Participant] = ROSTER,
) -> list[ParticipantResponse]:
    """Run both Round 1 sub-rounds and return one response per roster entry, in order.

    A participant failure is recorded on its ParticipantResponse and never
    stops the round.
    """
    emitter.emit("status", {
        "stage": "round1_start",
        "message": "Round 1: Creative team analyzing your brief...",
    })

    conversation: list[tuple[Participant, str]] = []
    conversational_errors: dict[str, str] = {}
    for participant in roster:
        text, error = await _conversational_turn(
            participant, roundtable_input, context, conversation, client, stages, emitter,
        )
        conversation.append((participant, text))
        if error:
            conversational_errors[participant.id] = error

    logger.info(
        "Round 1 conversational pass done: %d/%d participants responded",
        len(roster) - len(conversational_errors), len(roster),
    )

    # Each branch returns its own slot; slots are merged only after all settle.
    technical_results = await asyncio.gather(*(
        _technical_turn(p, roundtable_input, context, tuple(conversation), client, stages, emitter)
        for p in roster
    ))

    responses: list[ParticipantResponse] = []
    for (participant, conversational), (technical, technical_error) in zip(conversation, technical_results):
        responses.append(ParticipantResponse(
            agent=participant.id,
            name=participant.name,
            emoji=participant.emoji,
            conversational=conversational,
            technical=technical,
            error=conversational_errors.get(participant.id) or technical_error,
        ))

    emitter.emit("status", {
        "stage": "round1_complete",
        "message": "Round 1 complete. Team is now debating key creative decisions...",
    })
    return responses
