"""Synthesis API endpoint - one-shot payload to PipelineGraph."""
from typing import Any, Optional

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from pipeline_engine.engine.layout import LayoutParams
from pipeline_engine.engine.synthesizer import synthesize_with_report
from pipeline_engine.errors import SynthesisError
from pipeline_engine.models.graph import PipelineGraph

logger = structlog.get_logger()

router = APIRouter()


class SynthesizeRequest(BaseModel):
    """Request body for graph synthesis."""

    payload: dict[str, Any] = Field(
        ...,
        description="AI payload, bare or wrapped in the webhook envelope",
    )
    layout: Optional[LayoutParams] = Field(
        None,
        description="Layout parameters (configured defaults when omitted)",
    )


class DroppedAssignment(BaseModel):
    stage_level: str
    agent_name: Any
    reason: str


class SynthesizeResponse(BaseModel):
    """Response body for graph synthesis."""

    graph: PipelineGraph
    dropped_assignments: list[DroppedAssignment] = []
    duplicate_agents: list[str] = []


@router.post("/synthesize", response_model=SynthesizeResponse)
async def synthesize_graph(request: SynthesizeRequest) -> SynthesizeResponse:
    """Build a PipelineGraph from a one-shot AI payload."""
    try:
        graph, report = synthesize_with_report(request.payload, request.layout)
    except SynthesisError as e:
        logger.warning("synthesize_rejected", field=e.field, error=e.message)
        raise HTTPException(
            status_code=422,
            detail={"error_type": "SynthesisError", "field": e.field, "message": e.message},
        )
    except Exception as e:
        logger.error("synthesize_error", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    return SynthesizeResponse(
        graph=graph,
        dropped_assignments=[
            DroppedAssignment(
                stage_level=str(w.stage_level),
                agent_name=w.agent_name,
                reason=w.reason,
            )
            for w in report.dropped
        ],
        duplicate_agents=report.duplicate_agents,
    )
