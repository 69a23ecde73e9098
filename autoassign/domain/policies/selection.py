"""SelectionPolicy — deterministic ranking and winner pick."""

from __future__ import annotations

from autoassign.domain.entities.assignment_log import AssignmentCandidate


def rank_candidates(candidates: list[AssignmentCandidate]) -> list[AssignmentCandidate]:
    """Eligible first, then total score DESC, then technician id ASC."""
    return sorted(
        candidates,
        key=lambda c: (not c.eligible, -c.total_score, c.technician_id),
    )


def select_best(candidates: list[AssignmentCandidate]) -> AssignmentCandidate | None:
    """Return the best eligible candidate, or None when every one was excluded.

    Equal totals resolve to the lowest technician id, so repeated runs over
    identical inputs always pick the same technician.
    """
    ranked = rank_candidates(candidates)
    if not ranked or not ranked[0].eligible:
        return None
    return ranked[0]
