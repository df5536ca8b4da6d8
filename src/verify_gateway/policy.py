"""Verification policy: turn backend scores into a pass/fail result.

Author: Matthew Hong
"""

from typing import Sequence

from verify_gateway.models import VerificationResult

DEFAULT_THRESHOLD: float = 0.5
SUCCESS_MESSAGE = "Verification succeeded"
FAILURE_MESSAGE = "Verification failed"


def decide(scores: Sequence[float], threshold: float = DEFAULT_THRESHOLD) -> VerificationResult:
    """Threshold the first score.

    An empty score sequence is not an error: the score defaults to 0.0 and
    verification fails.

    Args:
        scores: Scores decoded from the backend response
        threshold: Minimum score counted as success (inclusive)

    Returns:
        VerificationResult with success flag, score and message
    """
    score = float(scores[0]) if len(scores) > 0 else 0.0
    success = score >= threshold
    return VerificationResult(
        success=success,
        score=score,
        message=SUCCESS_MESSAGE if success else FAILURE_MESSAGE,
    )
