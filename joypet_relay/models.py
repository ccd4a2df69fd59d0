"""
Shared data models for the JoyPet Relay service.

This module defines the core domain models used across multiple layers
of the application (state machine, sensor adapters, CLI, API).
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# MARK: - Pets and session


class Pet(BaseModel):
    """A pet and its asset bundle. Immutable once configured."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Identifier used to select the pet")
    idle_image: str = Field(..., description="Image shown while idle")
    joy_video: str = Field(..., description="Video played while joyful")
    sound: str = Field(..., description="Sound clip played with the joy video")


class DisplayState(str, Enum):
    IDLE = "idle"
    JOYFUL = "joyful"


class Session(BaseModel):
    """The only mutable state: which pet is shown and how."""

    pet: Pet
    state: DisplayState = DisplayState.IDLE
    last_trigger_at: float | None = Field(
        None, description="Monotonic time of the last accepted trigger"
    )
    presentation_id: int = Field(
        0, description="Identifies the presentation currently on screen"
    )


# MARK: - Triggers and intents


class TriggerSource(str, Enum):
    TOUCH = "touch"
    SPEECH_NAME = "speech-name"
    SPEECH_PRAISE = "speech-praise"
    SMILE = "smile"


class TriggerEvent(BaseModel):
    """A stimulus posted by one of the sensory producers."""

    model_config = ConfigDict(frozen=True)

    source: TriggerSource
    pet_id: str | None = Field(None, description="Pet named by the stimulus")
    arrived_at: float = Field(..., description="Monotonic arrival time")


class IntentKind(str, Enum):
    NONE = "none"
    PET_NAME = "pet-name"
    PRAISE = "praise"


class ClassifiedIntent(BaseModel):
    """What a recognised utterance asks of the pet."""

    model_config = ConfigDict(frozen=True)

    kind: IntentKind
    pet_id: str | None = None


NO_INTENT = ClassifiedIntent(kind=IntentKind.NONE)
PRAISE_INTENT = ClassifiedIntent(kind=IntentKind.PRAISE)


class RejectReason(str, Enum):
    JOYFUL = "joyful"
    COOLDOWN = "cooldown"


class TriggerOutcome(BaseModel):
    """Result of offering a trigger to the arbiter."""

    accepted: bool
    rejected_by: RejectReason | None = None
    session: Session


# MARK: - Presentation


class RenderEvent(BaseModel):
    """Instruction for presentation clients describing what to show."""

    state: DisplayState
    pet_id: str
    image: str | None = None
    video: str | None = None
    sound: str | None = None
    message: str | None = None
    presentation_id: int
    timestamp: float = Field(..., description="Unix timestamp of the render")
    missing: list[str] = Field(
        default_factory=list, description="Asset kinds that could not be found"
    )


# MARK: - Sensor inputs


class SpeechResult(BaseModel):
    """A single recognizer result, interim or final."""

    text: str
    is_final: bool = True


class Landmark(BaseModel):
    x: float
    y: float
    z: float = 0.0


class FaceSample(BaseModel):
    """Per-frame face inference result: blend-shape scores and/or landmarks."""

    blendshapes: dict[str, float] | None = Field(
        None, description="Blend-shape category name to score"
    )
    landmarks: list[Landmark] | None = None


class VisionFrame(BaseModel):
    timestamp: float = Field(..., description="Presentation time of the frame")
    face: FaceSample | None = Field(None, description="Absent when no face found")


class PointerEvent(BaseModel):
    """A pointer movement over the pet."""

    kind: str = Field(..., description="touchmove or mousemove")
    buttons: int = Field(0, description="Pressed-buttons bitmask")
