"""Pure dataclasses for the creative roundtable pipeline. No logic, no deps."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Setting:
    name: str
    description: str


@dataclass(frozen=True)
class RoundtableInput:
    brief: str
    platform: str
    visual_template: str | None = None
    character_context: str | None = None
    screenplay_context: str | None = None
    settings: tuple[Setting, ...] = ()
    # character name -> {"tone": ..., "pitch": ..., "accent": ...}
    voice_profiles: dict[str, dict[str, str]] = field(default_factory=dict)
    # e.g. {"camera_style": ..., "lighting_mood": ..., "color_palette": ..., "overall_tone": ...}
    style_hints: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Participant:
    id: str                    # "director", "cinematographer", ...
    name: str                  # display name
    emoji: str
    role: str
    personality: str
    sentences: str             # conversational length, e.g. "2-4"
    conversational_focus: str  # may contain {platform}
    technical_focus: str       # may contain {platform}


@dataclass(frozen=True)
class ChatMessage:
    role: str                  # "system", "user" or "assistant"
    content: str


@dataclass(frozen=True)
class CompletionRequest:
    messages: tuple[ChatMessage, ...]
    stream: bool = False
    temperature: float = 0.7
    max_tokens: int = 500


@dataclass
class ParticipantResponse:
    agent: str
    name: str
    emoji: str
    conversational: str = ""
    technical: str = ""
    error: str | None = None


@dataclass
class DebateTurn:
    from_agent: str
    to_agent: str
    text: str = ""
    error: str | None = None


@dataclass(frozen=True)
class Shot:
    start: str
    end: str
    label: str
    camera: str
    description: str


@dataclass(frozen=True)
class RunResult:
    final_prompt: str
    character_count: int
    suggested_shots: str
    agent_responses: tuple[ParticipantResponse, ...]
    hashtags: tuple[str, ...] = ()
    debate: tuple[DebateTurn, ...] = ()
    shots: tuple[Shot, ...] = ()

    def to_dict(self) -> dict:
        return {
            "finalPrompt": self.final_prompt,
            "characterCount": self.character_count,
            "suggestedShots": self.suggested_shots,
            "agentResponses": [
                {
                    "agent": r.agent,
                    "name": r.name,
                    "emoji": r.emoji,
                    "conversational": r.conversational,
                    "technical": r.technical,
                    "error": r.error,
                }
                for r in self.agent_responses
            ],
            "hashtags": list(self.hashtags),
            "debate": [
                {"from": t.from_agent, "to": t.to_agent, "content": t.text, "error": t.error}
                for t in self.debate
            ],
            "shots": [
                {
                    "start": s.start,
                    "end": s.end,
                    "label": s.label,
                    "camera": s.camera,
                    "description": s.description,
                }
                for s in self.shots
            ],
        }
