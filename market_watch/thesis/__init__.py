"""Pattern thesis module: component schemas, phase rules and the thesis itself."""

from .catalog import FAMILY_SCHEMAS, ComponentSpec, FamilySchema, get_family_schema
from .component import ThesisComponent
from .lifecycle import PHASE_RULES, PhaseRule, derive_phase
from .pattern_thesis import ComponentUpdate, PatternThesis, UpdateOutcome

__all__ = [
    "FAMILY_SCHEMAS",
    "ComponentSpec",
    "FamilySchema",
    "get_family_schema",
    "ThesisComponent",
    "PHASE_RULES",
    "PhaseRule",
    "derive_phase",
    "ComponentUpdate",
    "PatternThesis",
    "UpdateOutcome",
]
