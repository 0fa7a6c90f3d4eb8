"""Gig board: columns, drops and status toggles."""

from gigledger.board.state import (
    BoardError,
    BoardState,
    UnknownGigError,
    apply_drop,
    toggled_gig_status,
    toggled_milestone_status,
)

__all__ = [
    "BoardError",
    "BoardState",
    "UnknownGigError",
    "apply_drop",
    "toggled_gig_status",
    "toggled_milestone_status",
]
