"""Graph Synthesizer - builds a PipelineGraph from a one-shot AI payload.

The Synthesizer takes the already-parsed JSON the AI webhook returns and
turns it into a stable, addressable graph. It handles:
1. Unwrapping the webhook envelope and checking the payload shape
2. Ranking stages by level (stable for equal levels)
3. Minting agent ids and palette colors in first-appearance order
4. Resolving binding assignments, dropping the ones that don't resolve
5. Applying the initial layout
"""
import json
from dataclasses import dataclass, field
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from pipeline_engine.config import get_settings
from pipeline_engine.engine.identity import (
    normalize_name,
    resolve_agent_id,
    resolve_stage_id,
)
from pipeline_engine.engine.layout import LayoutParams, layout
from pipeline_engine.errors import SynthesisError, UnresolvedReferenceWarning
from pipeline_engine.models.graph import (
    Agent,
    Assignment,
    PipelineGraph,
    Stage,
    StageRole,
)
from pipeline_engine.models.payload import (
    AgentDescriptor,
    PipelinePayload,
    StageDescriptor,
    WebhookEnvelope,
)

logger = structlog.get_logger()


REQUIRED_FIELDS = ("stages", "agents")


@dataclass
class SynthesisReport:
    """What synthesis had to leave out."""

    dropped: list[UnresolvedReferenceWarning] = field(default_factory=list)
    duplicate_agents: list[str] = field(default_factory=list)


class Synthesizer:
    """Builds a complete PipelineGraph from a one-shot payload."""

    def __init__(
        self,
        palette: Optional[list[str]] = None,
        layout_params: Optional[LayoutParams] = None,
    ):
        settings = get_settings()
        self.palette = palette or list(settings.agent_palette)
        self.layout_params = layout_params
        self.default_pipeline_name = settings.default_pipeline_name

    def synthesize(self, raw: Any) -> tuple[PipelineGraph, SynthesisReport]:
        """Synthesize a graph from a raw payload or webhook envelope.

        Args:
            raw: Parsed JSON from the AI webhook

        Returns:
            Tuple of (laid-out PipelineGraph, SynthesisReport)

        Raises:
            SynthesisError: if the payload is missing stages/agents or is
                otherwise structurally invalid
        """
        payload = self._parse_payload(raw)
        report = SynthesisReport()

        logger.info(
            "synthesis_start",
            stage_count=len(payload.stages),
            agent_count=len(payload.agents),
            assignment_count=len(payload.stage_agent_assignments),
        )

        stages = self._build_stages(payload.stages)
        agents = self._build_agents(payload.agents, report)
        assignments = self._resolve_assignments(
            payload.stage_agent_assignments, stages, agents, report
        )

        graph = PipelineGraph(
            name=payload.pipeline.pipeline_name or self.default_pipeline_name,
            description=payload.pipeline.pipeline_description,
            stages=stages,
            agents=agents,
            assignments=assignments,
        )
        graph = layout(graph, self.layout_params)

        logger.info(
            "synthesis_complete",
            pipeline_name=graph.name,
            stage_count=len(graph.stages),
            agent_count=len(graph.agents),
            assignment_count=len(graph.assignments),
            dropped_assignments=len(report.dropped),
        )

        return graph, report

    def _parse_payload(self, raw: Any) -> PipelinePayload:
        """Unwrap the envelope if present and validate the payload shape."""
        if not isinstance(raw, dict):
            raise SynthesisError("payload", "Payload must be a JSON object")

        if "json_result" in raw and not any(f in raw for f in REQUIRED_FIELDS):
            raw = self._unwrap_envelope(raw)

        for required in REQUIRED_FIELDS:
            if not isinstance(raw.get(required), list):
                if required in raw:
                    raise SynthesisError(required, f"Payload field '{required}' must be an array")
                raise SynthesisError(required)

        try:
            return PipelinePayload.model_validate(raw)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise SynthesisError(
                location or "payload",
                f"Invalid payload at '{location}': {first.get('msg')}",
            ) from e

    def _unwrap_envelope(self, raw: dict) -> dict:
        """Extract json_result from the webhook envelope."""
        try:
            envelope = WebhookEnvelope.model_validate(
                {**raw, "json_result": self._decode_result(raw["json_result"])}
            )
        except ValidationError as e:
            raise SynthesisError("json_result", "Envelope json_result must be an object") from e

        logger.debug("envelope_unwrapped", flow_status=envelope.flow_status)
        return envelope.json_result

    def _decode_result(self, result: Any) -> Any:
        # Some webhook runs return the result as a JSON string
        if isinstance(result, str):
            try:
                return json.loads(result)
            except json.JSONDecodeError as e:
                raise SynthesisError("json_result", "Envelope json_result is not valid JSON") from e
        return result

    def _build_stages(self, descriptors: list[StageDescriptor]) -> list[Stage]:
        """Rank stages by ascending level, equal levels keep input order."""
        ordered = sorted(descriptors, key=lambda d: d.stage_level)

        stages: list[Stage] = []
        for position, descriptor in enumerate(ordered):
            stages.append(Stage(
                id=resolve_stage_id(descriptor.stage_level, (s.id for s in stages)),
                position=position,
                level=descriptor.stage_level,
                name=descriptor.stage_name,
                description=descriptor.stage_description,
                outcome=descriptor.won_status,
                requires_action=descriptor.requires_action,
            ))

        return stages

    def _build_agents(
        self,
        descriptors: list[AgentDescriptor],
        report: SynthesisReport,
    ) -> list[Agent]:
        """Mint ids and colors in input order. Repeated names keep the first."""
        agents: list[Agent] = []
        seen: set[str] = set()

        for descriptor in descriptors:
            key = normalize_name(descriptor.name)
            if key in seen:
                logger.warning("duplicate_agent_dropped", agent_name=descriptor.name)
                report.duplicate_agents.append(descriptor.name)
                continue
            seen.add(key)

            agents.append(Agent(
                id=resolve_agent_id(descriptor.name, agents),
                name=descriptor.name,
                color=self.palette[len(agents) % len(self.palette)],
                description=descriptor.description,
                persona=descriptor.persona,
                capabilities=list(descriptor.core_capabilities),
                specialties=list(descriptor.specialties),
                instructions=list(descriptor.instructions),
                core_instructions=descriptor.core_instructions,
                use_cases=list(descriptor.use_cases),
                assigned_stage_levels=list(descriptor.assigned_stages),
            ))

        return agents

    def _resolve_assignments(
        self,
        pairs: dict[str, Any],
        stages: list[Stage],
        agents: list[Agent],
        report: SynthesisReport,
    ) -> dict[str, Assignment]:
        """Resolve (level, agent name) pairs against the synthesized entities.

        Pairs that don't resolve are recorded on the report and dropped.
        """
        stages_by_level: dict[int, Stage] = {}
        for stage in stages:
            # First stage at a level (lowest position) takes the binding
            stages_by_level.setdefault(stage.level, stage)

        agents_by_name = {normalize_name(agent.name): agent for agent in agents}

        assignments: dict[str, Assignment] = {}
        for level_key, agent_name in pairs.items():
            try:
                level = int(str(level_key).strip())
            except ValueError:
                self._drop(report, level_key, agent_name, "stage level is not an integer")
                continue

            stage = stages_by_level.get(level)
            if stage is None:
                self._drop(report, level_key, agent_name, f"no stage at level {level}")
                continue

            if not isinstance(agent_name, str):
                self._drop(report, level_key, agent_name, "agent name is not a string")
                continue

            agent = agents_by_name.get(normalize_name(agent_name))
            if agent is None:
                self._drop(report, level_key, agent_name, "no agent with that name")
                continue

            if stage.id in assignments:
                logger.warning(
                    "assignment_overridden",
                    stage_id=stage.id,
                    previous_agent_id=assignments[stage.id].agent_id,
                    agent_id=agent.id,
                )

            assignments[stage.id] = Assignment(
                stage_id=stage.id,
                agent_id=agent.id,
                role=StageRole.PRIMARY,
            )

        return assignments

    def _drop(
        self,
        report: SynthesisReport,
        level_key: str,
        agent_name: Any,
        reason: str,
    ) -> None:
        warning = UnresolvedReferenceWarning(level_key, agent_name, reason)
        report.dropped.append(warning)
        logger.warning(
            "assignment_dropped",
            stage_level=level_key,
            agent_name=agent_name,
            reason=reason,
        )


def synthesize_with_report(
    raw: Any,
    layout_params: Optional[LayoutParams] = None,
) -> tuple[PipelineGraph, SynthesisReport]:
    """Synthesize a graph and report the assignment pairs that were dropped."""
    return Synthesizer(layout_params=layout_params).synthesize(raw)


def synthesize(raw: Any, layout_params: Optional[LayoutParams] = None) -> PipelineGraph:
    """Synthesize a laid-out PipelineGraph from a one-shot payload."""
    graph, _ = synthesize_with_report(raw, layout_params)
    return graph
