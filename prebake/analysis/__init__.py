"""Static checks run on candidate bodies before evaluation."""

from prebake.analysis.determinism import DeterminismChecker, DeterminismReport

__all__ = [
    'DeterminismChecker',
    'DeterminismReport',
]
