"""Ordered phase derivation rules.

Rules are evaluated top to bottom and the first one whose gate is satisfied
wins. A gate is the set of component names that must all be completed: the
required components of some tiers plus the family's anchor components. An
empty gate never fires.
"""
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from market_watch.models.pattern import Phase, Tier
from market_watch.thesis.catalog import FamilySchema


@dataclass(frozen=True)
class PhaseRule:
    """One row of the phase rule list.

    Attributes:
        phase: Phase assigned when the gate is satisfied
        tiers: Tiers whose required components belong to the gate
        anchors: Schema anchors added to the gate ("trigger", "terminal")
    """

    phase: Phase
    tiers: tuple[Tier, ...]
    anchors: tuple[str, ...] = ()

    def gate(self, schema: FamilySchema) -> frozenset[str]:
        """Resolve the gate of this rule for a family schema."""
        names: set[str] = set()
        for tier in self.tiers:
            names.update(schema.required_in_tier(tier))
        for anchor in self.anchors:
            if anchor == "trigger":
                names.add(schema.breakout_trigger)
            elif anchor == "terminal":
                names.add(schema.terminal_component)
            else:
                raise ValueError(f"Unknown phase rule anchor: {anchor!r}")
        return frozenset(names)


PHASE_RULES: tuple[PhaseRule, ...] = (
    PhaseRule(Phase.COMPLETED, tiers=(Tier.TARGET,), anchors=("terminal",)),
    PhaseRule(Phase.TARGET_PURSUIT, tiers=(Tier.BREAKOUT,)),
    PhaseRule(Phase.BREAKOUT, tiers=(Tier.FORMATION,), anchors=("trigger",)),
)

DEFAULT_PHASE = Phase.FORMATION


def derive_phase(
    schema: FamilySchema,
    completed: Mapping[str, bool] | Iterable[str],
    rules: tuple[PhaseRule, ...] = PHASE_RULES,
) -> Phase:
    """Derive the phase from the completion state alone.

    Args:
        schema: Family schema supplying tiers and anchors
        completed: Mapping of component name to completed flag, or the
            collection of completed names
        rules: Ordered rule list

    Returns:
        The phase of the first satisfied rule, else formation
    """
    if isinstance(completed, Mapping):
        done = {name for name, flag in completed.items() if flag}
    else:
        done = set(completed)

    for rule in rules:
        gate = rule.gate(schema)
        if gate and gate <= done:
            return rule.phase
    return DEFAULT_PHASE
