"""Pydantic response models for the control API.

WHY: The control endpoints need typed schemas for response
serialization and the generated /docs page. Pydantic models keep the
wire shape separate from the controller's internal dataclasses.

HOW: One model per response. Enum values reuse the core enums so the
API and the controller can never disagree on a phase or outcome name.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Response models never expose adapter internals
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from read_aloud.core.models import CycleOutcome, CyclePhase, CycleTrigger


class CaptureResponse(BaseModel):
    """Response for POST /capture."""

    started: bool = Field(
        description="True if a new cycle started; false if one was already in flight.",
    )
    cycle_id: Optional[int] = Field(
        default=None,
        description="Id of the started cycle, when one started.",
    )


class ToggleResponse(BaseModel):
    auto_capture_enabled: bool = Field(
        description="Value of the auto-capture flag after the toggle.",
    )


class ReportResponse(BaseModel):
    """A finished cycle."""

    cycle_id: int = Field(description="Sequential cycle id.")
    trigger: CycleTrigger = Field(description="What started the cycle.")
    outcome: CycleOutcome = Field(description="How the cycle ended.")
    message: str = Field(description="Short human-readable summary.")
    token_count: int = Field(description="Number of recognized tokens.")
    spoken: List[str] = Field(description="Words sent to speech, in reading order.")
    started_at: float = Field(description="Epoch seconds when the cycle started.")
    finished_at: float = Field(description="Epoch seconds when the cycle ended.")


class StatusResponse(BaseModel):
    phase: CyclePhase = Field(description="Current state machine phase.")
    auto_capture_enabled: bool = Field(description="Whether timer ticks may start cycles.")
    speaking: bool = Field(description="Whether speech is still playing or queued.")
    cycles_started: int = Field(description="Cycles started since startup.")
    outcomes: Dict[str, int] = Field(description="Finished cycles per outcome.")
    word_count: int = Field(description="Size of the loaded word list.")
    last_report: Optional[ReportResponse] = Field(
        default=None,
        description="Report of the most recent finished cycle.",
    )


class BoxModel(BaseModel):
    text: str = Field(description="Recognized text.")
    left: int = Field(description="Left edge in preview pixels.")
    top: int = Field(description="Top edge in preview pixels.")
    width: int = Field(description="Box width in preview pixels.")
    height: int = Field(description="Box height in preview pixels.")
    spoken: bool = Field(description="Whether the word was sent to speech.")
    confidence: Optional[float] = Field(default=None, description="Recognizer confidence.")


class OverlayResponse(BaseModel):
    cycle_id: Optional[int] = Field(
        default=None,
        description="Cycle that produced these boxes; null before the first one.",
    )
    boxes: List[BoxModel] = Field(description="Boxes in reading order.")


class HealthResponse(BaseModel):
    status: str = Field(description="Always 'ok' when the service is up.")
    version: str = Field(description="Package version.")
