"""Action API endpoint - apply one conversational edit to a graph."""
from typing import Any, Optional

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from pipeline_engine.engine.layout import LayoutParams
from pipeline_engine.engine.reducer import Reducer
from pipeline_engine.models.graph import EntityRef, PipelineGraph

logger = structlog.get_logger()

router = APIRouter()


class ActionRequest(BaseModel):
    """Request body for applying an action."""

    graph: PipelineGraph = Field(..., description="Current graph, owned by the caller")
    action: dict[str, Any] = Field(
        ...,
        description='Action in wire form: {"type": ..., "payload": {...}}',
    )
    layout: Optional[LayoutParams] = None


class ActionResponse(BaseModel):
    """Response body for an applied action."""

    graph: PipelineGraph
    changed: list[EntityRef]


@router.post("/actions", response_model=ActionResponse)
async def apply_action(request: ActionRequest) -> ActionResponse:
    """Apply a single FlowAction.

    A rejected action answers 409 with the error type so the chat layer
    can tell the user; the caller's graph stays as it was.
    """
    result = Reducer(layout_params=request.layout).apply(request.graph, request.action)

    if not result.ok:
        logger.warning(
            "apply_action_rejected",
            error_type=result.error.error_type,
            error=str(result.error),
        )
        raise HTTPException(
            status_code=409,
            detail={
                "error_type": result.error.error_type,
                "message": str(result.error),
            },
        )

    return ActionResponse(graph=result.graph, changed=result.changed)
