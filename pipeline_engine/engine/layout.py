"""Layout Coordinator - board coordinates for stages and bound agents.

Stages sit on one horizontal axis ordered by position. A bound agent sits
directly below its stage. Unbound agents get no coordinates; the board
shows them in its own tray.

Layout is recomputed from position and assignment state alone, so a
"reset layout" is just layout() with the default parameters.
"""
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from pipeline_engine.config import get_settings
from pipeline_engine.models.graph import Coordinates, PipelineGraph

logger = structlog.get_logger()


class LayoutParams(BaseModel):
    """Spacing parameters for the board."""

    stage_spacing_px: int = Field(250, ge=150, le=300)
    agent_offset_px: int = Field(350, ge=250, le=500)

    @classmethod
    def from_settings(cls) -> "LayoutParams":
        settings = get_settings()
        return cls(
            stage_spacing_px=settings.stage_spacing_px,
            agent_offset_px=settings.agent_offset_px,
        )


def layout(
    graph: PipelineGraph,
    params: Optional[LayoutParams] = None,
) -> PipelineGraph:
    """Return a copy of the graph with coordinates populated.

    Args:
        graph: Graph to lay out (left untouched)
        params: Spacing parameters, configured defaults when omitted

    Returns:
        New PipelineGraph with stage, agent and slot coordinates set
    """
    params = params or LayoutParams.from_settings()
    placed = graph.model_copy(deep=True)

    for stage in placed.stages:
        stage.coordinates = Coordinates(x=stage.position * params.stage_spacing_px, y=0)

    placed.agent_slots = {}
    agent_coordinates: dict[str, Coordinates] = {}

    # Stages are in position order, so the first slot an agent gets is
    # the one under its lowest-position stage
    for stage in placed.stages:
        assignment = placed.assignments.get(stage.id)
        if assignment is None:
            continue
        slot = Coordinates(x=stage.coordinates.x, y=params.agent_offset_px)
        placed.agent_slots[stage.id] = slot
        agent_coordinates.setdefault(assignment.agent_id, slot)

    for agent in placed.agents:
        coordinates = agent_coordinates.get(agent.id)
        agent.coordinates = coordinates.model_copy() if coordinates else None

    logger.debug(
        "layout_applied",
        stage_count=len(placed.stages),
        placed_agents=len(agent_coordinates),
        stage_spacing_px=params.stage_spacing_px,
        agent_offset_px=params.agent_offset_px,
    )

    return placed
