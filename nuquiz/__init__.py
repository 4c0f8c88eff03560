"""
NuQuiz core: knowledge hierarchy rules, deterministic question generation
and strict-match scoring.
"""

__version__ = "0.1.0"
