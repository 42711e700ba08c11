"""Reducer - applies one conversational edit to an existing PipelineGraph.

Every action works on a copy of the graph. Ids, levels and bindings of
entities the action doesn't target are never touched; only position
ranks shift when a stage is inserted or removed. A rejected action comes
back as an ActionResult carrying the error and the untouched input graph.
"""
import copy
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import structlog

from pipeline_engine.config import get_settings
from pipeline_engine.engine.identity import resolve_agent_id, resolve_stage_id
from pipeline_engine.engine.layout import LayoutParams, layout
from pipeline_engine.errors import (
    ActionError,
    InvalidActionError,
    UnknownAgentError,
    UnknownStageError,
)
from pipeline_engine.models.actions import (
    AddStage,
    AssignAgent,
    FlowAction,
    OptimizePipeline,
    RemoveStage,
    RenameStage,
    UnassignAgent,
    parse_action,
)
from pipeline_engine.models.graph import (
    Agent,
    Assignment,
    EntityKind,
    EntityRef,
    PipelineGraph,
    Stage,
)

logger = structlog.get_logger()


@dataclass
class ActionResult:
    """Outcome of applying one or more actions."""

    graph: PipelineGraph
    changed: list[EntityRef] = field(default_factory=list)
    error: Optional[ActionError] = None
    applied: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class Reducer:
    """Applies FlowActions to a PipelineGraph."""

    def __init__(
        self,
        layout_params: Optional[LayoutParams] = None,
        palette: Optional[list[str]] = None,
    ):
        self.layout_params = layout_params
        self.palette = palette or list(get_settings().agent_palette)

    def apply(self, graph: PipelineGraph, action: Any) -> ActionResult:
        """Apply a single action.

        Args:
            graph: Current graph (never modified)
            action: A typed FlowAction or its wire form

        Returns:
            ActionResult with the new graph and the entities that changed,
            or the input graph and the error when the action is rejected
        """
        action_type = action.get("type") if isinstance(action, dict) else getattr(action, "type", None)

        try:
            action = parse_action(action)
            modified = copy.deepcopy(graph)
            changed = self._dispatch(modified, action)
        except ActionError as e:
            logger.warning(
                "action_rejected",
                action=action_type,
                error_type=e.error_type,
                error=str(e),
            )
            return ActionResult(graph=graph, error=e)

        if not changed:
            logger.info("action_noop", action=action.type)
            return ActionResult(graph=graph, applied=1)

        # Re-validate the structural invariants, then refresh coordinates
        result_graph = layout(
            PipelineGraph.model_validate(modified.model_dump()),
            self.layout_params,
        )

        logger.info(
            "action_applied",
            action=action.type,
            changed_count=len(changed),
            stage_count=len(result_graph.stages),
            agent_count=len(result_graph.agents),
        )

        return ActionResult(graph=result_graph, changed=changed, applied=1)

    def apply_many(self, graph: PipelineGraph, actions: Iterable[Any]) -> ActionResult:
        """Apply actions in order, stopping at the first rejected one.

        The returned graph reflects every action applied before the
        rejection; ``applied`` counts them.
        """
        current = ActionResult(graph=graph)

        for action in actions:
            result = self.apply(current.graph, action)
            if not result.ok:
                return ActionResult(
                    graph=current.graph,
                    changed=current.changed,
                    error=result.error,
                    applied=current.applied,
                )
            current = ActionResult(
                graph=result.graph,
                changed=_merge_refs(current.changed, result.changed),
                applied=current.applied + 1,
            )

        return current

    def _dispatch(self, graph: PipelineGraph, action: FlowAction) -> list[EntityRef]:
        if isinstance(action, AddStage):
            return self._apply_add_stage(graph, action)
        elif isinstance(action, AssignAgent):
            return self._apply_assign_agent(graph, action)
        elif isinstance(action, OptimizePipeline):
            # Optimization is the conversational layer's job
            return []
        elif isinstance(action, RemoveStage):
            return self._apply_remove_stage(graph, action)
        elif isinstance(action, RenameStage):
            return self._apply_rename_stage(graph, action)
        elif isinstance(action, UnassignAgent):
            return self._apply_unassign_agent(graph, action)

        raise InvalidActionError(f"Unsupported action '{type(action).__name__}'")

    def _apply_add_stage(self, graph: PipelineGraph, action: AddStage) -> list[EntityRef]:
        """Append a stage, or insert it at a rank and shift the ranks after it."""
        stages = graph.stages

        if action.position is not None and action.position < 0:
            raise InvalidActionError(f"Stage position must be >= 0, got {action.position}")

        if action.position is None or action.position >= len(stages):
            rank = len(stages)
            level = max((s.level for s in stages), default=0) + 1
        else:
            rank = action.position
            # Share the level of the stage before it so levels stay
            # non-decreasing along the ranking
            level = stages[rank - 1].level if rank > 0 else stages[0].level

        new_stage = Stage(
            id=resolve_stage_id(level, (s.id for s in stages)),
            position=rank,
            level=level,
            name=action.name,
        )

        changed = [EntityRef(kind=EntityKind.STAGE, id=new_stage.id)]
        for stage in stages[rank:]:
            stage.position += 1
            changed.append(EntityRef(kind=EntityKind.STAGE, id=stage.id))

        stages.insert(rank, new_stage)
        return changed

    def _apply_assign_agent(self, graph: PipelineGraph, action: AssignAgent) -> list[EntityRef]:
        """Bind an agent to a stage, replacing any previous binding."""
        stage = graph.find_stage_by_name(action.stage_name)
        if stage is None:
            raise UnknownStageError(action.stage_name)

        changed = []
        agent = graph.find_agent_by_name(action.agent_name)
        if agent is None:
            agent = Agent(
                id=resolve_agent_id(action.agent_name, graph.agents),
                name=action.agent_name.strip(),
                color=self.palette[len(graph.agents) % len(self.palette)],
            )
            graph.agents.append(agent)
            changed.append(EntityRef(kind=EntityKind.AGENT, id=agent.id))

        previous = graph.assignments.get(stage.id)
        if previous and previous.agent_id == agent.id and previous.role == action.role:
            return changed

        graph.assignments[stage.id] = Assignment(
            stage_id=stage.id,
            agent_id=agent.id,
            role=action.role,
        )
        changed.append(EntityRef(kind=EntityKind.ASSIGNMENT, id=stage.id))
        return changed

    def _apply_remove_stage(self, graph: PipelineGraph, action: RemoveStage) -> list[EntityRef]:
        """Remove a stage and its binding, closing the gap in the ranking."""
        stage = graph.find_stage_by_name(action.stage_name)
        if stage is None:
            raise UnknownStageError(action.stage_name)

        changed = [EntityRef(kind=EntityKind.STAGE, id=stage.id)]
        if graph.assignments.pop(stage.id, None) is not None:
            changed.append(EntityRef(kind=EntityKind.ASSIGNMENT, id=stage.id))
        graph.agent_slots.pop(stage.id, None)

        graph.stages.remove(stage)
        for later in graph.stages[stage.position:]:
            later.position -= 1
            changed.append(EntityRef(kind=EntityKind.STAGE, id=later.id))

        return changed

    def _apply_rename_stage(self, graph: PipelineGraph, action: RenameStage) -> list[EntityRef]:
        stage = graph.find_stage_by_name(action.stage_name)
        if stage is None:
            raise UnknownStageError(action.stage_name)

        if stage.name == action.new_name:
            return []
        stage.name = action.new_name
        return [EntityRef(kind=EntityKind.STAGE, id=stage.id)]

    def _apply_unassign_agent(self, graph: PipelineGraph, action: UnassignAgent) -> list[EntityRef]:
        """Drop an agent's binding from one stage or from every stage."""
        agent = graph.find_agent_by_name(action.agent_name)
        if agent is None:
            raise UnknownAgentError(action.agent_name)

        if action.stage_name is not None:
            stage = graph.find_stage_by_name(action.stage_name)
            if stage is None:
                raise UnknownStageError(action.stage_name)
            targets = [stage]
        else:
            targets = graph.stages_for_agent(agent.id)

        changed = []
        for stage in targets:
            assignment = graph.assignments.get(stage.id)
            if assignment and assignment.agent_id == agent.id:
                del graph.assignments[stage.id]
                changed.append(EntityRef(kind=EntityKind.ASSIGNMENT, id=stage.id))

        return changed


def _merge_refs(first: list[EntityRef], second: list[EntityRef]) -> list[EntityRef]:
    """Concatenate refs, keeping the first occurrence of each."""
    merged = list(first)
    for ref in second:
        if ref not in merged:
            merged.append(ref)
    return merged


def apply(
    graph: PipelineGraph,
    action: Any,
    layout_params: Optional[LayoutParams] = None,
) -> ActionResult:
    """Apply a single action with a default Reducer."""
    return Reducer(layout_params=layout_params).apply(graph, action)
