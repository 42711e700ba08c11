"""Pydantic models for the pipeline graph engine."""
from pipeline_engine.models.graph import (
    PipelineGraph,
    Stage,
    Agent,
    Assignment,
    Coordinates,
    EntityKind,
    EntityRef,
    StageOutcome,
    StageRole,
)
from pipeline_engine.models.payload import (
    PipelinePayload,
    PipelineMeta,
    StageDescriptor,
    AgentDescriptor,
    WebhookEnvelope,
)
from pipeline_engine.models.actions import (
    FlowAction,
    AddStage,
    AssignAgent,
    OptimizePipeline,
    RemoveStage,
    RenameStage,
    UnassignAgent,
    parse_action,
)

__all__ = [
    "PipelineGraph",
    "Stage",
    "Agent",
    "Assignment",
    "Coordinates",
    "EntityKind",
    "EntityRef",
    "StageOutcome",
    "StageRole",
    "PipelinePayload",
    "PipelineMeta",
    "StageDescriptor",
    "AgentDescriptor",
    "WebhookEnvelope",
    "FlowAction",
    "AddStage",
    "AssignAgent",
    "OptimizePipeline",
    "RemoveStage",
    "RenameStage",
    "UnassignAgent",
    "parse_action",
]
