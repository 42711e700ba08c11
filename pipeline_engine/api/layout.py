"""Layout API endpoint - recompute board coordinates."""
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from pipeline_engine.engine.layout import LayoutParams, layout
from pipeline_engine.models.graph import PipelineGraph

router = APIRouter()


class LayoutRequest(BaseModel):
    graph: PipelineGraph
    layout: Optional[LayoutParams] = None


class LayoutResponse(BaseModel):
    graph: PipelineGraph


@router.post("/layout", response_model=LayoutResponse)
async def layout_graph(request: LayoutRequest) -> LayoutResponse:
    """Lay the graph out again. Omitting parameters resets to the defaults."""
    return LayoutResponse(graph=layout(request.graph, request.layout))
