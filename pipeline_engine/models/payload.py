"""Input contract for the one-shot pipeline payload.

Mirrors the JSON the upstream AI webhook produces. Field names are kept
exactly as the webhook emits them.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from pipeline_engine.models.graph import StageOutcome


class PipelineMeta(BaseModel):
    """Pipeline-level metadata."""

    pipeline_name: str = Field("", description="Pipeline name")
    pipeline_description: str = Field("", description="Pipeline description")


class StageDescriptor(BaseModel):
    """A stage as described by the AI."""

    stage_level: int = Field(..., description="Ordering key, not guaranteed unique")
    stage_name: str
    stage_description: str = ""
    won_status: StageOutcome = StageOutcome.NEUTRAL
    requires_action: bool = False


class AgentDescriptor(BaseModel):
    """An agent as described by the AI."""

    name: str
    description: str = ""
    persona: str = ""
    core_capabilities: list[str] = Field(default_factory=list)
    specialties: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    core_instructions: str = ""
    use_cases: list[str] = Field(default_factory=list)
    assigned_stages: list[int] = Field(
        default_factory=list,
        description="Capability declaration, not a binding",
    )


class PipelinePayload(BaseModel):
    """Complete one-shot payload."""

    pipeline: PipelineMeta = Field(default_factory=PipelineMeta)
    stages: list[StageDescriptor]
    agents: list[AgentDescriptor]
    stage_agent_assignments: dict[str, Any] = Field(
        default_factory=dict,
        description="stage level (string key) -> agent name",
    )

    @field_validator("pipeline", "stage_agent_assignments", mode="before")
    @classmethod
    def default_optional_objects(cls, v):
        """Treat a null optional object as empty."""
        return {} if v is None else v


class WebhookEnvelope(BaseModel):
    """Envelope the conversational webhook wraps the payload in."""

    response: str = ""
    flow_status: Optional[str] = None
    json_result: dict
