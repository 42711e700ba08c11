"""FlowAction - the closed set of incremental edits the chat layer emits.

The conversational layer sends actions in a loose wire form:

    {"type": "assign_agent", "payload": {"agentName": ..., "stageName": ..., "role": ...}}

parse_action() turns that into one of the typed models below.
"""
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pipeline_engine.errors import InvalidActionError
from pipeline_engine.models.graph import StageRole


class _Action(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class AddStage(_Action):
    """Create a new stage, appended or inserted at a rank."""

    type: Literal["add_stage"] = "add_stage"
    name: str = Field(..., min_length=1)
    position: Optional[int] = Field(None, description="Rank to insert at")


class AssignAgent(_Action):
    """Bind an agent (created if unknown) to an existing stage."""

    type: Literal["assign_agent"] = "assign_agent"
    agent_name: str = Field(..., alias="agentName", min_length=1)
    stage_name: str = Field(..., alias="stageName", min_length=1)
    role: StageRole = StageRole.PRIMARY


class OptimizePipeline(_Action):
    """Handled entirely by the conversational layer; touches nothing here."""

    type: Literal["optimize_pipeline"] = "optimize_pipeline"


class RemoveStage(_Action):
    type: Literal["remove_stage"] = "remove_stage"
    stage_name: str = Field(..., alias="stageName", min_length=1)


class RenameStage(_Action):
    type: Literal["rename_stage"] = "rename_stage"
    stage_name: str = Field(..., alias="stageName", min_length=1)
    new_name: str = Field(..., alias="newName", min_length=1)


class UnassignAgent(_Action):
    """Drop an agent's binding from one stage, or from all of them."""

    type: Literal["unassign_agent"] = "unassign_agent"
    agent_name: str = Field(..., alias="agentName", min_length=1)
    stage_name: Optional[str] = Field(None, alias="stageName")


FlowAction = Union[AddStage, AssignAgent, OptimizePipeline, RemoveStage, RenameStage, UnassignAgent]

ACTION_TYPES: dict[str, type[_Action]] = {
    "add_stage": AddStage,
    "assign_agent": AssignAgent,
    "optimize_pipeline": OptimizePipeline,
    "remove_stage": RemoveStage,
    "rename_stage": RenameStage,
    "unassign_agent": UnassignAgent,
}


def parse_action(data: Any) -> FlowAction:
    """Parse an action from its wire form.

    Accepts either {"type": ..., "payload": {...}} or a flat dict with the
    fields next to "type". Already-typed actions are returned as is.

    Raises:
        InvalidActionError: if the shape is not a recognized action
    """
    if isinstance(data, _Action):
        return data

    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise InvalidActionError("Action must be an object with a 'type' field")

    payload = data.get("payload") or {}
    if not isinstance(payload, dict):
        raise InvalidActionError("Action payload must be an object")

    fields = dict(payload)
    for key, value in data.items():
        if key != "payload":
            fields.setdefault(key, value)
    fields["type"] = data["type"]

    action_cls = ACTION_TYPES.get(data["type"])
    if action_cls is None:
        raise InvalidActionError(f"Unknown action type '{data['type']}'")

    try:
        return action_cls.model_validate(fields)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise InvalidActionError(
            f"Invalid '{data.get('type')}' action at '{location}': {first.get('msg')}"
        ) from e
