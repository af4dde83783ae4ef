"""
X-Factor cricket statistics engine.

Ingests per-match performance rows, resolves player identity across source
references and folds career statistics into an eligibility-gated ranking
score.
"""

__version__ = "1.0.0"
