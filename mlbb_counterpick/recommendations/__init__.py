"""
Counter-pick recommendation engine.

Modules
-------
composition : CompositionSummary + summarize_opponents() — damage mix and tags.
items       : recommend_defense() + recommend_offense() — rule-based item picks.
heroes      : score_hero() + recommend_heroes() + build_reasoning() — ranked
              hero counter-picks from the counters knowledge base.

All functions are pure: no file or network I/O.
"""
