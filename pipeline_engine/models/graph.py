"""PipelineGraph - the synthesized stage/agent graph.

This is the structure handed between the Synthesizer, the Reducer and the
Layout Coordinator. It captures:
- Ordered stages with stable ids and a contiguous position ranking
- Agents in first-appearance order with their palette color
- Binding assignments (at most one agent per stage)
- Layout coordinates for the rendering layer
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class StageOutcome(str, Enum):
    """Outcome a stage represents for an opportunity."""
    WON = "won"
    NEUTRAL = "neutral"
    LOST = "lost"


class StageRole(str, Enum):
    """Role an agent plays on the stage it is bound to."""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUPPORT = "support"


class EntityKind(str, Enum):
    """Kinds of entity an action can touch."""
    STAGE = "stage"
    AGENT = "agent"
    ASSIGNMENT = "assignment"


class Coordinates(BaseModel):
    """2D position for board layout."""

    x: int = Field(0, description="X coordinate")
    y: int = Field(0, description="Y coordinate")


class Stage(BaseModel):
    """A step in the sales pipeline."""

    id: str = Field(..., description="Stable stage identifier")
    position: int = Field(..., ge=0, description="0-based rank on the board")
    level: int = Field(..., description="Ordering key from the payload")
    name: str = Field(..., description="Display name")
    description: str = Field("", description="Stage description")
    outcome: StageOutcome = Field(StageOutcome.NEUTRAL)
    requires_action: bool = Field(False)

    # Layout
    coordinates: Optional[Coordinates] = Field(
        None,
        description="Board coordinates (set by layout)",
    )


class Agent(BaseModel):
    """An AI persona that can be bound to stages."""

    id: str = Field(..., description="Stable agent identifier")
    name: str = Field(..., description="Agent name, the only cross-reference key")
    color: str = Field(..., description="Display color from the palette")
    description: str = Field("")
    persona: str = Field("")
    capabilities: list[str] = Field(default_factory=list)
    specialties: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    core_instructions: str = Field("")
    use_cases: list[str] = Field(default_factory=list)

    # Capability declaration - display only, never a binding
    assigned_stage_levels: list[int] = Field(
        default_factory=list,
        description="Stage levels the agent declares it can serve",
    )

    coordinates: Optional[Coordinates] = Field(
        None,
        description="Coordinates under the first bound stage (set by layout)",
    )


class Assignment(BaseModel):
    """Binding of one agent to one stage."""

    stage_id: str
    agent_id: str
    role: StageRole = StageRole.PRIMARY


class EntityRef(BaseModel):
    """Reference to an entity touched by an action."""

    kind: EntityKind
    id: str


class PipelineGraph(BaseModel):
    """Stages, agents and binding assignments of one pipeline.

    Stages are kept in position order. Assignments are keyed by stage id
    so a stage can never carry more than one binding.
    """

    name: str = Field(..., description="Pipeline name")
    description: str = Field("", description="Pipeline description")

    stages: list[Stage] = Field(default_factory=list)
    agents: list[Agent] = Field(default_factory=list)
    assignments: dict[str, Assignment] = Field(
        default_factory=dict,
        description="stage id -> binding assignment",
    )

    # Layout output for bound agents, one slot per stage
    agent_slots: dict[str, Coordinates] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_graph_integrity(self):
        """Ensure ids are unique, positions contiguous and bindings resolvable."""
        stage_ids = [s.id for s in self.stages]
        if len(set(stage_ids)) != len(stage_ids):
            raise ValueError("Duplicate stage id in graph")

        agent_ids = [a.id for a in self.agents]
        if len(set(agent_ids)) != len(agent_ids):
            raise ValueError("Duplicate agent id in graph")

        for index, stage in enumerate(self.stages):
            if stage.position != index:
                raise ValueError(
                    f"Stage '{stage.id}' has position {stage.position}, expected {index}"
                )

        for earlier, later in zip(self.stages, self.stages[1:]):
            if later.level < earlier.level:
                raise ValueError(
                    f"Stage '{later.id}' (level {later.level}) is ranked after "
                    f"'{earlier.id}' (level {earlier.level})"
                )

        known_stages = set(stage_ids)
        known_agents = set(agent_ids)
        for stage_id, assignment in self.assignments.items():
            if assignment.stage_id != stage_id:
                raise ValueError(f"Assignment key '{stage_id}' does not match its stage")
            if stage_id not in known_stages:
                raise ValueError(f"Assignment stage '{stage_id}' not found")
            if assignment.agent_id not in known_agents:
                raise ValueError(f"Assignment agent '{assignment.agent_id}' not found")

        return self

    def get_stage(self, stage_id: str) -> Optional[Stage]:
        """Get a stage by its ID."""
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        """Get an agent by its ID."""
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        return None

    def find_stage_by_name(self, name: str) -> Optional[Stage]:
        """First stage (in position order) whose name matches case-insensitively."""
        from pipeline_engine.engine.identity import names_match

        for stage in self.stages:
            if names_match(stage.name, name):
                return stage
        return None

    def find_agent_by_name(self, name: str) -> Optional[Agent]:
        """Agent whose name matches case-insensitively."""
        from pipeline_engine.engine.identity import names_match

        for agent in self.agents:
            if names_match(agent.name, name):
                return agent
        return None

    def assignment_map(self) -> dict[str, str]:
        """Flat stage id -> agent id view of the bindings."""
        return {
            stage_id: assignment.agent_id
            for stage_id, assignment in self.assignments.items()
        }

    def agent_for_stage(self, stage_id: str) -> Optional[Agent]:
        """Get the agent bound to a stage, if any."""
        assignment = self.assignments.get(stage_id)
        if assignment is None:
            return None
        return self.get_agent(assignment.agent_id)

    def stages_for_agent(self, agent_id: str) -> list[Stage]:
        """Stages bound to an agent, in position order."""
        return [
            stage for stage in self.stages
            if stage.id in self.assignments
            and self.assignments[stage.id].agent_id == agent_id
        ]
