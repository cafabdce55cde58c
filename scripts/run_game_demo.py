#!/usr/bin/env python3
import os, json, sys
sys.path.insert(0, os.getcwd())
import logging
from pathlib import Path

import numpy as np

from tsr_challenge.core.config import AppConfig, GameConfig
from tsr_challenge.orchestration.round_orchestrator import RoundOrchestrator
from tsr_challenge.orchestration.scheduler import ManualTickScheduler

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

OUTPUT_DIR = os.path.join(os.getcwd(), 'scripts', 'output')
Path(OUTPUT_DIR).mkdir(parents=True, exist_ok=True)

# One strategy per team: the same cards are re-submitted every round they are available and affordable
STRATEGIES = {
    'Growth Hawks': ['expand_capacity', 'market_expansion', 'ev_investment', 'acquire_competitor', 'autonomous_tech_bet'],
    'Lean Machine': ['lean_manufacturing', 'automation_upgrade', 'shared_services', 'digital_twin'],
    'Steady Hands': ['compliance_upgrade', 'maintenance_overhaul', 'diversify_suppliers', 'talent_retention'],
    'Balanced': ['expand_capacity', 'lean_manufacturing', 'compliance_upgrade'],
}

print('Instantiating orchestrator on a virtual clock...')
scheduler = ManualTickScheduler()
config = AppConfig(game=GameConfig(team_count=len(STRATEGIES), round_duration_seconds=60))
orch = RoundOrchestrator(config=config, scheduler=scheduler, rng=np.random.default_rng(7))

for index, name in enumerate(STRATEGIES):
    orch.join_game(name, f'conn-{index}')
orch.start_game()
orch.trigger_event('supply_chain_disruption')

while orch.get_status() != 'finished':
    available = {d.id for d in orch.get_available_decisions()}
    for index, (name, cards) in enumerate(STRATEGIES.items()):
        # drafts are auto-submitted at round end, trimmed to what fits the budget
        orch.sync_draft_selections(f'conn-{index}', [card for card in cards if card in available])
    scheduler.advance(config.game.round_duration_seconds + config.game.countdown_offset_seconds)
    results = orch.get_last_round_results()
    print(f"Round {results.round} ({results.scenario_type}):",
          [(r.team_name, round(r.stock_price, 2)) for r in results.team_results])
    orch.next_round()

final = orch.get_final_results()
summary = {
    'winner_id': final.winner_id,
    'simulation_summary': final.simulation_summary,
    'leaderboard': [
        {
            'rank': e.rank,
            'team': e.team_name,
            'round5_stock_price': round(e.round5_stock_price, 2),
            'final_stock_price': round(e.final_stock_price, 2),
            'total_dividends': round(e.total_dividends, 2),
            'total_tsr': round(e.total_tsr, 4),
        }
        for e in final.leaderboard
    ],
    'scoreboard': orch.get_scoreboard(),
}
print('Summary:', final.simulation_summary)
with open(os.path.join(OUTPUT_DIR, 'tsr_game_summary.json'), 'w') as fh:
    json.dump(summary, fh, indent=2)
print('Summary saved to', os.path.join(OUTPUT_DIR, 'tsr_game_summary.json'))
