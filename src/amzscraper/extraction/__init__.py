"""
CSS-selector and regex heuristics that turn product and review pages into records.
"""
