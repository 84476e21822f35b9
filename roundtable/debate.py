"""Round 2: streamed challenge/response exchanges between roster participants."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from config.config_loader import StageConfig
from roundtable.client import CompletionClient
from roundtable.events import EventEmitter
from roundtable.models import (
    ChatMessage,
    CompletionRequest,
    DebateTurn,
    Participant,
    ParticipantResponse,
    RoundtableInput,
)
from roundtable.participants import get_participant
from roundtable.streaming import fold_stream

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebatePairing:
    challenger: str  # participant id
    responder: str


DEFAULT_PAIRINGS: tuple[DebatePairing, ...] = (DebatePairing("director", "cinematographer"),)


def resolve_pairings(pairs: Sequence[tuple[str, str]]) -> tuple[DebatePairing, ...]:
    """Validate (challenger, responder) id pairs against the roster.

    Raises:
        ValueError: On an unknown id or a participant paired with itself.
    """
    pairings: list[DebatePairing] = []
    for challenger, responder in pairs:
        get_participant(challenger)
        get_participant(responder)
        if challenger == responder:
            raise ValueError(f"Participant {challenger} cannot debate itself")
        pairings.append(DebatePairing(challenger, responder))
    return tuple(pairings) or DEFAULT_PAIRINGS


def build_challenge_messages(
    challenger: Participant,
    responder: Participant,
    roundtable_input: RoundtableInput,
    responder_position: str,
) -> tuple[ChatMessage, ...]:
    system = (
        f"You are the {challenger.name}. Challenge the {responder.name}'s approach with a specific "
        "creative question or alternative perspective. Be constructive and professional. "
        "Keep it to 1-2 sentences."
    )
    position = responder_position.strip() or "(they have not shared a position yet)"
    user = (
        f'Based on this brief: "{roundtable_input.brief}" for {roundtable_input.platform}\n\n'
        f'The {responder.name} said: "{position}"\n\n'
        "What's your perspective or concern?"
    )
    return (ChatMessage("system", system), ChatMessage("user", user))


def build_response_messages(
    responder: Participant,
    challenger: Participant,
    roundtable_input: RoundtableInput,
    challenge: str,
    challenger_position: str,
) -> tuple[ChatMessage, ...]:
    system = (
        f"You are the {responder.name}. Respond to the {challenger.name}'s challenge. You can agree, "
        "defend your approach, or find a middle ground. Be professional and collaborative. "
        "Keep it to 1-2 sentences."
    )
    # A failed challenge falls back to the challenger's Round 1 position.
    said = challenge.strip() or challenger_position.strip() or "(no comment)"
    user = (
        f'Brief: "{roundtable_input.brief}" for {roundtable_input.platform}\n\n'
        f'The {challenger.name} said: "{said}"\n\n'
        "How do you respond?"
    )
    return (ChatMessage("system", system), ChatMessage("user", user))


async def _stream_turn(
    speaker: Participant,
    addressee: Participant,
    messages: tuple[ChatMessage, ...],
    client: CompletionClient,
    stage: StageConfig,
    emitter: EventEmitter,
) -> DebateTurn:
    """Stream one utterance. Failures become an error-marked turn with empty text."""
    request = CompletionRequest(
        messages=messages,
        stream=True,
        temperature=stage.temperature,
        max_tokens=stage.max_tokens,
    )
    turn = DebateTurn(from_agent=speaker.id, to_agent=addressee.id)

    def on_chunk(content: str) -> None:
        emitter.emit("debate_chunk", {
            "from": speaker.id,
            "fromName": speaker.name,
            "fromEmoji": speaker.emoji,
            "content": content,
        })

    try:
        turn.text = await fold_stream(client.stream(request), on_chunk)
    except Exception as exc:
        logger.warning("Debate turn failed for %s: %s", speaker.id, exc)
        turn.error = str(exc)
        emitter.emit("agent_error", {"agent": speaker.id, "name": speaker.name, "error": str(exc)})

    emitter.emit("debate_message", {
        "from": speaker.id,
        "fromName": speaker.name,
        "to": addressee.id,
        "toName": addressee.name,
        "content": turn.text,
    })
    return turn


async def run_debate(
    roundtable_input: RoundtableInput,
    responses: Sequence[ParticipantResponse],
    client: CompletionClient,
    stage: StageConfig,
    emitter: EventEmitter,
    pairings: Sequence[DebatePairing] = DEFAULT_PAIRINGS,
) -> list[DebateTurn]:
    """Run every pairing in order: challenge, then response. Strictly sequential.

    Returns the turns in the order they were spoken (two per pairing).
    """
    positions = {r.agent: r.conversational for r in responses}
    turns: list[DebateTurn] = []

    for pairing in pairings:
        challenger = get_participant(pairing.challenger)
        responder = get_participant(pairing.responder)

        emitter.emit("debate_start", {
            "challenger": challenger.id,
            "challengerName": challenger.name,
            "challengerEmoji": challenger.emoji,
            "responder": responder.id,
            "responderName": responder.name,
            "responderEmoji": responder.emoji,
            "message": f"{challenger.emoji} {challenger.name} is challenging "
                       f"{responder.emoji} {responder.name}'s approach...",
        })

        challenge = await _stream_turn(
            challenger,
            responder,
            build_challenge_messages(challenger, responder, roundtable_input, positions.get(responder.id, "")),
            client,
            stage,
            emitter,
        )
        response = await _stream_turn(
            responder,
            challenger,
            build_response_messages(
                responder, challenger, roundtable_input, challenge.text, positions.get(challenger.id, ""),
            ),
            client,
            stage,
            emitter,
        )
        turns.extend([challenge, response])

    emitter.emit("debate_complete", {"message": "Creative debate concluded. Moving to synthesis..."})
    logger.info("Debate complete: %d turns, %d failed", len(turns), sum(1 for t in turns if t.error))
    return turns
