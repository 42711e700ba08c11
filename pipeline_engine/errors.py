"""Error taxonomy for synthesis and incremental actions."""
from typing import Optional


class PipelineEngineError(Exception):
    """Base class for all engine errors."""


class SynthesisError(PipelineEngineError):
    """The one-shot payload is malformed. Synthesis is aborted."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        self.message = message or f"Payload is missing required field '{field}'"
        super().__init__(self.message)


class UnresolvedReferenceWarning(UserWarning):
    """An assignment pair references an unknown stage level or agent name.

    Never raised. The pair is dropped and synthesis continues.
    """

    def __init__(self, stage_level: str, agent_name: str, reason: str):
        self.stage_level = stage_level
        self.agent_name = agent_name
        self.reason = reason
        super().__init__(
            f"Dropped assignment {stage_level!r} -> {agent_name!r}: {reason}"
        )


class ActionError(PipelineEngineError):
    """An incremental action was rejected. The graph is unchanged."""

    @property
    def error_type(self) -> str:
        return type(self).__name__


class UnknownStageError(ActionError):
    def __init__(self, stage_name: str):
        self.stage_name = stage_name
        super().__init__(f"No stage named '{stage_name}'")


class UnknownAgentError(ActionError):
    def __init__(self, agent_name: str):
        self.agent_name = agent_name
        super().__init__(f"No agent named '{agent_name}'")


class InvalidActionError(ActionError):
    """The action itself is malformed or carries an impossible argument."""
