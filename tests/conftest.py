"""Shared fixtures: payloads shaped like the AI webhook output."""
import pytest

from pipeline_engine.engine.synthesizer import synthesize


def _stage(level, name, won_status="neutral", requires_action=False):
    return {
        "stage_level": level,
        "stage_name": name,
        "stage_description": f"{name} stage",
        "won_status": won_status,
        "requires_action": requires_action,
    }


def _agent(name, assigned_stages=()):
    return {
        "name": name,
        "description": f"{name} handles leads",
        "persona": "Friendly and concise",
        "core_capabilities": ["qualification"],
        "specialties": ["saas"],
        "instructions": ["Be brief"],
        "core_instructions": "Follow up within a day.",
        "use_cases": ["inbound leads"],
        "assigned_stages": list(assigned_stages),
    }


@pytest.fixture
def saas_payload():
    """A small SaaS sales pipeline."""
    return {
        "pipeline": {
            "pipeline_name": "SaaS Sales",
            "pipeline_description": "Inbound SaaS pipeline",
        },
        "stages": [
            _stage(1, "Discovery", requires_action=True),
            _stage(2, "Demo"),
            _stage(3, "Closed Won", won_status="won"),
        ],
        "agents": [
            _agent("Aria", assigned_stages=[1, 2]),
            _agent("Clio", assigned_stages=[3]),
        ],
        "stage_agent_assignments": {"1": "Aria", "3": "clio"},
    }


@pytest.fixture
def saas_graph(saas_payload):
    """saas_payload run through the synthesizer."""
    return synthesize(saas_payload)


@pytest.fixture
def make_stage():
    """Builder for stage descriptors."""
    return _stage


@pytest.fixture
def make_agent():
    """Builder for agent descriptors."""
    return _agent
