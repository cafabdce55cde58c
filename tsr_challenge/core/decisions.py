"""Built-in decision catalog rows.

Rows use the same shape as a JSON catalog file so both sources go through
`Decision.from_dict`. Impact coefficients are per-year rates; grow decisions
carry a cogs_impact that reflects the variable cost of the added volume.
"""
from typing import Any, Dict, List

GP_CUSTOMER = "customer_focus"
GP_EXCELLENCE = "operational_excellence"
GP_INNOVATION = "innovation"
GP_DISCIPLINE = "financial_discipline"
GP_RESPONSIBILITY = "responsibility"

ALL_ROUNDS = [1, 2, 3, 4, 5]

DEFAULT_DECISION_ROWS: List[Dict[str, Any]] = [
    # --- grow ---
    {
        'id': 'expand_capacity', 'name': 'Expand Plant Capacity', 'category': 'grow', 'cost': 500,
        'available_rounds': [1, 2, 3, 5], 'revenue_impact': 0.012, 'cogs_impact': 0.0105, 'sga_impact': 0.002,
        'duration_years': 5, 'ramp_up_years': 2, 'impact_magnitude': 4, 'guiding_principle': GP_CUSTOMER,
    },
    {
        'id': 'market_expansion', 'name': 'Enter New Regional Market', 'category': 'grow', 'cost': 350,
        'available_rounds': [1, 2, 5], 'revenue_impact': 0.008, 'cogs_impact': 0.007, 'sga_impact': 0.004,
        'duration_years': 5, 'ramp_up_years': 2, 'impact_magnitude': 3, 'guiding_principle': GP_CUSTOMER,
    },
    {
        'id': 'expand_customer_base', 'name': 'Win New OEM Programs', 'category': 'grow', 'cost': 250,
        'available_rounds': [1, 3, 4, 5], 'revenue_impact': 0.006, 'cogs_impact': 0.0052, 'sga_impact': 0.003,
        'duration_years': 4, 'ramp_up_years': 1, 'impact_magnitude': 3, 'guiding_principle': GP_CUSTOMER,
    },
    {
        'id': 'ev_investment', 'name': 'EV Powertrain Platform', 'category': 'grow', 'cost': 600,
        'available_rounds': [1, 2, 3], 'revenue_impact': 0.018, 'cogs_impact': 0.015, 'sga_impact': 0.004,
        'is_risky': True, 'duration_years': 6, 'ramp_up_years': 3, 'impact_magnitude': 5,
        'guiding_principle': GP_INNOVATION,
    },
    {
        'id': 'acquire_competitor', 'name': 'Acquire Regional Competitor', 'category': 'grow', 'cost': 900,
        'available_rounds': [2, 4, 5], 'revenue_impact': 0.025, 'cogs_impact': 0.021, 'sga_impact': 0.006,
        'is_risky': True, 'duration_years': 5, 'ramp_up_years': 1, 'impact_magnitude': 5,
        'guiding_principle': GP_DISCIPLINE, 'decision_type': 'inorganic',
    },
    {
        'id': 'next_gen_portfolio', 'name': 'Next-Gen Product Portfolio', 'category': 'grow', 'cost': 400,
        'available_rounds': [2, 3, 4], 'revenue_impact': 0.009, 'cogs_impact': 0.0075, 'sga_impact': 0.002,
        'duration_years': 5, 'ramp_up_years': 2, 'impact_magnitude': 4, 'guiding_principle': GP_INNOVATION,
    },
    {
        'id': 'aftermarket_services', 'name': 'Aftermarket Services Business', 'category': 'grow', 'cost': 200,
        'available_rounds': [1, 2, 4, 5], 'revenue_impact': 0.003, 'cogs_impact': 0.002,
        'recurring_benefit': 15, 'duration_years': 5, 'ramp_up_years': 1, 'impact_magnitude': 2,
        'guiding_principle': GP_CUSTOMER,
    },
    {
        'id': 'autonomous_tech_bet', 'name': 'Autonomous Driving Sensor Bet', 'category': 'grow', 'cost': 700,
        'available_rounds': [3, 4, 5], 'revenue_impact': 0.02, 'cogs_impact': 0.016, 'sga_impact': 0.005,
        'is_risky': True, 'duration_years': 5, 'ramp_up_years': 2, 'impact_magnitude': 5,
        'guiding_principle': GP_INNOVATION,
    },
    {
        'id': 'joint_venture_asia', 'name': 'Asian Joint Venture', 'category': 'grow', 'cost': 450,
        'available_rounds': [4, 5], 'revenue_impact': 0.01, 'cogs_impact': 0.0088, 'sga_impact': 0.002,
        'duration_years': 5, 'ramp_up_years': 2, 'impact_magnitude': 3, 'guiding_principle': GP_DISCIPLINE,
        'decision_type': 'inorganic',
    },
    # --- optimize ---
    {
        'id': 'lean_manufacturing', 'name': 'Lean Manufacturing Program', 'category': 'optimize', 'cost': 300,
        'available_rounds': ALL_ROUNDS, 'cogs_impact': -0.004,
        'duration_years': 5, 'ramp_up_years': 2, 'impact_magnitude': 3, 'guiding_principle': GP_EXCELLENCE,
    },
    {
        'id': 'automation_upgrade', 'name': 'Robotics & Automation Upgrade', 'category': 'optimize', 'cost': 450,
        'available_rounds': [1, 2, 3, 4], 'cogs_impact': -0.006, 'sga_impact': -0.005,
        'duration_years': 6, 'ramp_up_years': 2, 'impact_magnitude': 4, 'guiding_principle': GP_EXCELLENCE,
    },
    {
        'id': 'shared_services', 'name': 'Shared Services Center', 'category': 'optimize', 'cost': 200,
        'available_rounds': [1, 2, 3], 'sga_impact': -0.03,
        'duration_years': 4, 'ramp_up_years': 1, 'impact_magnitude': 3, 'guiding_principle': GP_DISCIPLINE,
    },
    {
        'id': 'procurement_excellence', 'name': 'Strategic Procurement Program', 'category': 'optimize', 'cost': 150,
        'available_rounds': [2, 3, 4], 'cogs_impact': -0.002,
        'duration_years': 3, 'ramp_up_years': 1, 'impact_magnitude': 2, 'guiding_principle': GP_DISCIPLINE,
    },
    {
        'id': 'lights_out_factory', 'name': 'Lights-Out Factory Pilot', 'category': 'optimize', 'cost': 650,
        'available_rounds': [2, 3, 4, 5], 'cogs_impact': -0.01, 'sga_impact': -0.004,
        'is_risky': True, 'duration_years': 6, 'ramp_up_years': 3, 'impact_magnitude': 5,
        'guiding_principle': GP_INNOVATION,
    },
    {
        'id': 'footprint_consolidation', 'name': 'Plant Footprint Consolidation', 'category': 'optimize', 'cost': 400,
        'available_rounds': [3, 4], 'cogs_impact': -0.005, 'sga_impact': -0.01,
        'recurring_benefit': 60, 'is_one_time_benefit': True,
        'duration_years': 5, 'ramp_up_years': 2, 'impact_magnitude': 4, 'guiding_principle': GP_DISCIPLINE,
    },
    {
        'id': 'digital_twin', 'name': 'Digital Twin Engineering', 'category': 'optimize', 'cost': 250,
        'available_rounds': [1, 4, 5], 'cogs_impact': -0.0025, 'sga_impact': -0.008,
        'duration_years': 4, 'ramp_up_years': 1, 'impact_magnitude': 3, 'guiding_principle': GP_INNOVATION,
    },
    {
        'id': 'offshore_engineering', 'name': 'Offshore Engineering Hub', 'category': 'optimize', 'cost': 350,
        'available_rounds': [1, 2, 5], 'sga_impact': -0.04,
        'is_risky': True, 'duration_years': 5, 'ramp_up_years': 1, 'impact_magnitude': 4,
        'guiding_principle': GP_DISCIPLINE,
    },
    # --- sustain ---
    {
        'id': 'diversify_suppliers', 'name': 'Diversify Supplier Base', 'category': 'sustain', 'cost': 150,
        'available_rounds': [1, 2, 3, 4], 'cogs_impact': -0.0005, 'risk_prevention': 'supply_chain_disruption',
        'duration_years': 5, 'ramp_up_years': 1, 'impact_magnitude': 2, 'guiding_principle': GP_EXCELLENCE,
    },
    {
        'id': 'dual_source_critical', 'name': 'Dual-Source Critical Parts', 'category': 'sustain', 'cost': 200,
        'available_rounds': [2, 3, 4, 5], 'recurring_benefit': 10, 'risk_prevention': 'supply_chain_disruption',
        'duration_years': 5, 'ramp_up_years': 1, 'impact_magnitude': 2, 'guiding_principle': GP_EXCELLENCE,
    },
    {
        'id': 'diversify_customers', 'name': 'Customer Diversification Program', 'category': 'sustain', 'cost': 200,
        'available_rounds': [1, 2, 3, 4], 'revenue_impact': 0.001, 'risk_prevention': 'key_customer_loss',
        'duration_years': 5, 'ramp_up_years': 1, 'impact_magnitude': 2, 'guiding_principle': GP_CUSTOMER,
    },
    {
        'id': 'compliance_upgrade', 'name': 'Regulatory Compliance Upgrade', 'category': 'sustain', 'cost': 150,
        'available_rounds': ALL_ROUNDS, 'recurring_benefit': 12, 'risk_prevention': 'regulatory_change',
        'duration_years': 5, 'ramp_up_years': 1, 'impact_magnitude': 2, 'guiding_principle': GP_RESPONSIBILITY,
    },
    {
        'id': 'sustainability_initiative', 'name': 'Carbon Reduction Initiative', 'category': 'sustain', 'cost': 300,
        'available_rounds': [1, 3, 4, 5], 'cogs_impact': -0.0015, 'recurring_benefit': 20,
        'risk_prevention': 'regulatory_change',
        'duration_years': 6, 'ramp_up_years': 2, 'impact_magnitude': 3, 'guiding_principle': GP_RESPONSIBILITY,
    },
    {
        'id': 'maintenance_overhaul', 'name': 'Preventive Maintenance Overhaul', 'category': 'sustain', 'cost': 250,
        'available_rounds': ALL_ROUNDS, 'cogs_impact': -0.001, 'recurring_benefit': 25,
        'duration_years': 4, 'ramp_up_years': 1, 'impact_magnitude': 3, 'guiding_principle': GP_EXCELLENCE,
    },
    {
        'id': 'cybersecurity_hardening', 'name': 'Cybersecurity Hardening', 'category': 'sustain', 'cost': 100,
        'available_rounds': ALL_ROUNDS, 'recurring_benefit': 8,
        'duration_years': 3, 'ramp_up_years': 1, 'impact_magnitude': 1, 'guiding_principle': GP_RESPONSIBILITY,
    },
    {
        'id': 'talent_retention', 'name': 'Engineering Talent Retention', 'category': 'sustain', 'cost': 120,
        'available_rounds': [2, 3, 4, 5], 'sga_impact': 0.002, 'recurring_benefit': 30,
        'duration_years': 3, 'ramp_up_years': 1, 'impact_magnitude': 2, 'guiding_principle': GP_CUSTOMER,
    },
]
