"""Quick script to run a few breeding requests with a simulated player."""

import logging
import sqlite3
from pathlib import Path

from breed_sim import BreedingEngine
from breed_sim.projector import genetic_descriptor, visual_appeal

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

print("=" * 60)
print("Running Quick Breeding Test")
print("=" * 60)

# Session ids restart at 0001 for every engine
Path('breeding_history.db').unlink(missing_ok=True)
engine = BreedingEngine.from_config('example_config.yaml', db_path='breeding_history.db')
engine.initialize()

requests = [
    engine.submit_request('ember', 'frost', 'gene_matching'),
    engine.submit_request('ember', 'moss', 'random'),
    engine.submit_request('frost', 'gale', 'incubation'),  # Different species: rejected
]

# Simulated 30 fps loop with a fairly skilled player
frames = 0
while engine.active_requests and frames < 30 * 180:
    engine.tick(1.0 / 30.0, proficiency=0.85)
    frames += 1

print(f"\nSimulated {frames} frames ({frames / 30.0:.1f} s)\n")
for request_id in requests:
    result = engine.poll_result(request_id)
    print(f"{request_id}: game={result.game_type} success={result.success} "
          f"score={result.final_score:.0f} offspring={result.offspring_count} "
          f"bonus={result.bonus_traits_earned} xp={result.experience_gained}")
    for creature_id in result.offspring_ids:
        phenotype = engine.registry.phenotype(creature_id)
        print(f"    {creature_id}: {genetic_descriptor(phenotype)}, total={phenotype.total()}, "
              f"appeal={visual_appeal(phenotype):.2f}, markers={phenotype.special_markers!r}")

engine.close()

# Query the history database
conn = sqlite3.connect('breeding_history.db')
cursor = conn.cursor()
cursor.execute("""
    SELECT status, COUNT(*), SUM(offspring_count)
    FROM breeding_sessions
    GROUP BY status
""")
print("\nHistory:")
print("-" * 60)
for status, sessions, offspring in cursor.fetchall():
    print(f"  {status:<10} sessions={sessions:<4} offspring={offspring or 0}")
conn.close()
