"""Tests for parsing FlowActions from the chat layer's wire form."""
import pytest

from pipeline_engine.errors import InvalidActionError
from pipeline_engine.models.actions import (
    AddStage,
    AssignAgent,
    OptimizePipeline,
    UnassignAgent,
    parse_action,
)
from pipeline_engine.models.graph import StageRole


def test_add_stage_with_payload():
    """The payload form parses into AddStage."""
    action = parse_action({"type": "add_stage", "payload": {"name": "Nurture", "position": 1}})

    assert action == AddStage(name="Nurture", position=1)


def test_assign_agent_camel_case_keys():
    """camelCase wire keys map onto snake_case fields."""
    action = parse_action({
        "type": "assign_agent",
        "payload": {"agentName": "Aria", "stageName": "Demo", "role": "support"},
    })

    assert isinstance(action, AssignAgent)
    assert action.agent_name == "Aria"
    assert action.stage_name == "Demo"
    assert action.role == StageRole.SUPPORT


def test_optimize_without_payload():
    """Actions without fields need no payload."""
    assert isinstance(parse_action({"type": "optimize_pipeline"}), OptimizePipeline)


def test_flat_form():
    """Fields may sit next to "type" instead of under "payload"."""
    action = parse_action({"type": "unassign_agent", "agentName": "Aria"})

    assert action == UnassignAgent(agentName="Aria")


def test_typed_action_passes_through():
    """Already-typed actions are returned unchanged."""
    action = AddStage(name="Demo")

    assert parse_action(action) is action


@pytest.mark.parametrize(
    "data",
    [
        None,
        "add_stage",
        {"payload": {"name": "x"}},
        {"type": "teleport"},
        {"type": "add_stage", "payload": {}},
        {"type": "assign_agent", "payload": {"agentName": "Aria", "stageName": "Demo", "role": "boss"}},
    ],
)
def test_invalid_actions(data):
    """Malformed shapes, unknown types and bad fields raise InvalidActionError."""
    with pytest.raises(InvalidActionError):
        parse_action(data)
