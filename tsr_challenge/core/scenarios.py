from typing import Dict, Optional

from tsr_challenge.core.types import (
    SCENARIO_BUSINESS_AS_USUAL, SCENARIO_COST_PRESSURE, SCENARIO_RECESSION, SCENARIO_RECOVERY,
    ScenarioModifiers, ScenarioState, SpecialEvent,
)

# Rounds 1-2: business as usual. Round 3: cost pressure rewards optimize.
# Round 4: recession rewards sustain, punishes grow. Round 5: recovery rewards grow.
SCENARIO_BY_ROUND: Dict[int, Dict] = {
    1: {
        'scenario_type': SCENARIO_BUSINESS_AS_USUAL,
        'narrative': "Fiscal year 2026: a stable market with moderate growth expectations.",
        'modifiers': ScenarioModifiers(1.0, 1.0, 1.0),
    },
    2: {
        'scenario_type': SCENARIO_BUSINESS_AS_USUAL,
        'narrative': "Fiscal year 2027: continued stability as early investments start to show.",
        'modifiers': ScenarioModifiers(1.0, 1.0, 1.0),
    },
    3: {
        'scenario_type': SCENARIO_COST_PRESSURE,
        'narrative': "Fiscal year 2028: raw material and labor costs rise; margins come under pressure.",
        'modifiers': ScenarioModifiers(grow_multiplier=0.7, optimize_multiplier=1.2, sustain_multiplier=1.0),
    },
    4: {
        'scenario_type': SCENARIO_RECESSION,
        'narrative': "Fiscal year 2029: recession. Production cuts make cash preservation critical.",
        'modifiers': ScenarioModifiers(grow_multiplier=0.5, optimize_multiplier=1.0, sustain_multiplier=1.5),
    },
    5: {
        'scenario_type': SCENARIO_RECOVERY,
        'narrative': "Fiscal year 2030: recovery. Final decisions before projecting forward to 2035.",
        'modifiers': ScenarioModifiers(grow_multiplier=1.3, optimize_multiplier=1.0, sustain_multiplier=0.8),
    },
}

NEUTRAL_MODIFIERS = ScenarioModifiers(1.0, 1.0, 1.0)


def create_scenario_state(round_number: int) -> ScenarioState:
    """Fresh ScenarioState for a round; modifiers are copied, never shared."""
    if round_number not in SCENARIO_BY_ROUND:
        raise ValueError(f"No scenario configured for round {round_number}")
    definition = SCENARIO_BY_ROUND[round_number]
    mods = definition['modifiers']
    return ScenarioState(
        scenario_type=definition['scenario_type'],
        narrative=definition['narrative'],
        modifiers=ScenarioModifiers(mods.grow_multiplier, mods.optimize_multiplier, mods.sustain_multiplier),
    )


SPECIAL_EVENTS: Dict[str, SpecialEvent] = {
    'supply_chain_disruption': SpecialEvent(
        event_type='supply_chain_disruption',
        description='A major supply chain disruption has occurred. Teams with diversified suppliers are protected.',
        affected_decisions=('diversify_suppliers', 'dual_source_critical'),
        revenue_shock=-0.02,
    ),
    'key_customer_loss': SpecialEvent(
        event_type='key_customer_loss',
        description='A major OEM is in-sourcing a key component. Customer diversification matters.',
        affected_decisions=('diversify_customers', 'expand_customer_base'),
        revenue_shock=-0.025,
    ),
    'technology_shift': SpecialEvent(
        event_type='technology_shift',
        description='An EV technology breakthrough has accelerated the transition timeline. Early movers benefit.',
        affected_decisions=('ev_investment', 'next_gen_portfolio'),
        revenue_shock=-0.015,
    ),
    'regulatory_change': SpecialEvent(
        event_type='regulatory_change',
        description='New environmental regulations are announced. Compliance investments prove valuable.',
        affected_decisions=('compliance_upgrade', 'sustainability_initiative'),
        revenue_shock=-0.01,
    ),
    'competitor_acquisition': SpecialEvent(
        event_type='competitor_acquisition',
        description='A major competitor has been acquired, creating openings for those with capacity.',
        affected_decisions=('expand_capacity', 'market_expansion'),
        revenue_shock=-0.01,
    ),
}


def get_special_event(event_type: str) -> Optional[SpecialEvent]:
    return SPECIAL_EVENTS.get(event_type)
