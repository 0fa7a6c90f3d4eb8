"""
Gig Board State

DESIGN DECISION: A drop is applied locally first, then saved. If the
save fails the whole board is replaced by a fresh fetch from the
backend; a failed move is never patched back by hand.

The functions here are pure. apply_drop() never mutates the list it is
given: a no-op returns that same list object, a move returns a new
list in which only the moved gig is a new object.
"""

from typing import Mapping, Optional

from gigledger.models.gigs import Gig, GigStatus, Milestone, MilestoneStatus


class BoardError(Exception):
    """Base exception for board errors."""
    pass


class UnknownGigError(BoardError):
    """No gig with the given id is on the board."""
    pass


def apply_drop(
    gigs: list[Gig],
    gig_id: str,
    target_column,
) -> tuple[list[Gig], Optional[Gig]]:
    """
    Apply a card drop to the gig list.

    Args:
        gigs: Current board gigs
        gig_id: Id of the dragged card
        target_column: Column the card was dropped on (status value or name)

    Returns:
        (gigs, moved). `moved` is None for a no-op, in which case `gigs`
        is the very list passed in.
    """
    status = GigStatus.parse(target_column)
    if status is None:
        return gigs, None

    for index, gig in enumerate(gigs):
        if gig.id != gig_id:
            continue
        if gig.status == status:
            return gigs, None
        moved = gig.model_copy(update={"status": status})
        updated = list(gigs)
        updated[index] = moved
        return updated, moved

    return gigs, None


def toggled_milestone_status(milestone: Milestone) -> MilestoneStatus:
    """Done <-> To Do. Any unfinished state becomes Done."""
    return MilestoneStatus.TODO if milestone.is_done else MilestoneStatus.DONE


def toggled_gig_status(gig: Gig) -> GigStatus:
    """Completed <-> Open. Any other state becomes Completed."""
    return GigStatus.OPEN if gig.status == GigStatus.COMPLETED else GigStatus.COMPLETED


class BoardState:
    """
    Gigs and their milestones as currently shown on the board.

    Instances are replaced, not edited: every change produces a new
    BoardState so a view never sees a half-applied update.
    """

    def __init__(
        self,
        gigs: Optional[list[Gig]] = None,
        milestones: Optional[Mapping[str, list[Milestone]]] = None,
    ):
        self.gigs: list[Gig] = gigs if gigs is not None else []
        self.milestones: dict[str, list[Milestone]] = dict(milestones or {})

    def gig(self, gig_id: str) -> Gig:
        for gig in self.gigs:
            if gig.id == gig_id:
                return gig
        raise UnknownGigError(f"No gig {gig_id} on the board")

    def milestones_for(self, gig_id: str) -> list[Milestone]:
        return list(self.milestones.get(gig_id, []))

    def columns(self) -> dict[GigStatus, list[Gig]]:
        """Cards per column, every column present, board order kept."""
        columns: dict[GigStatus, list[Gig]] = {status: [] for status in GigStatus}
        for gig in self.gigs:
            columns[gig.status].append(gig)
        return columns

    def drop(self, gig_id: str, target_column) -> tuple["BoardState", Optional[Gig]]:
        """apply_drop() on this board. A no-op returns this same BoardState."""
        gigs, moved = apply_drop(self.gigs, gig_id, target_column)
        if moved is None:
            return self, None
        return BoardState(gigs, self.milestones), moved
