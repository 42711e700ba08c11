"""Pipeline graph synthesis and incremental-mutation engine."""
from pipeline_engine.engine.identity import (
    slugify,
    normalize_name,
    names_match,
    resolve_agent_id,
    resolve_stage_id,
)
from pipeline_engine.engine.layout import LayoutParams, layout
from pipeline_engine.engine.synthesizer import (
    Synthesizer,
    SynthesisReport,
    synthesize,
    synthesize_with_report,
)
from pipeline_engine.engine.reducer import ActionResult, Reducer, apply

__all__ = [
    "slugify",
    "normalize_name",
    "names_match",
    "resolve_agent_id",
    "resolve_stage_id",
    "LayoutParams",
    "layout",
    "Synthesizer",
    "SynthesisReport",
    "synthesize",
    "synthesize_with_report",
    "ActionResult",
    "Reducer",
    "apply",
]
