"""
Tests for the gig board state.
"""

import pytest

from gigledger.board import (
    BoardState,
    UnknownGigError,
    apply_drop,
    toggled_gig_status,
    toggled_milestone_status,
)
from gigledger.models import Gig, GigStatus, Milestone, MilestoneStatus


@pytest.fixture
def gigs():
    return [
        Gig(id="g1", title="Website", status=GigStatus.OPEN),
        Gig(id="g2", title="Logo", status=GigStatus.IN_PROGRESS),
        Gig(id="g3", title="Audit", status=GigStatus.COMPLETED),
    ]


class TestApplyDrop:
    """Tests for apply_drop()."""

    def test_drop_on_own_column_is_noop(self, gigs):
        result, moved = apply_drop(gigs, "g1", "Open")
        assert result is gigs
        assert moved is None

    def test_drop_on_unknown_column_is_noop(self, gigs):
        result, moved = apply_drop(gigs, "g1", "Paused")
        assert result is gigs
        assert moved is None

    def test_drop_of_unknown_gig_is_noop(self, gigs):
        result, moved = apply_drop(gigs, "nope", "Completed")
        assert result is gigs
        assert moved is None

    def test_move_changes_only_status(self, gigs):
        result, moved = apply_drop(gigs, "g1", "InProgress")
        assert result is not gigs
        assert moved.status == GigStatus.IN_PROGRESS
        assert moved.model_dump(exclude={"status"}) == gigs[0].model_dump(exclude={"status"})
        assert result[0] is moved
        assert result[1] is gigs[1]
        assert result[2] is gigs[2]

    def test_input_list_is_untouched(self, gigs):
        apply_drop(gigs, "g1", "Archived")
        assert gigs[0].status == GigStatus.OPEN
        assert [g.id for g in gigs] == ["g1", "g2", "g3"]


class TestToggles:
    """Tests for status toggles."""

    def test_gig_toggle(self):
        assert toggled_gig_status(Gig(status=GigStatus.COMPLETED)) == GigStatus.OPEN
        assert toggled_gig_status(Gig(status=GigStatus.IN_PROGRESS)) == GigStatus.COMPLETED

    def test_milestone_toggle(self):
        assert toggled_milestone_status(Milestone(status=MilestoneStatus.DONE)) == MilestoneStatus.TODO
        assert toggled_milestone_status(Milestone(status=MilestoneStatus.BLOCKED)) == MilestoneStatus.DONE


class TestBoardState:
    """Tests for BoardState."""

    def test_columns_include_every_status(self, gigs):
        columns = BoardState(gigs).columns()
        assert list(columns) == list(GigStatus)
        assert [g.id for g in columns[GigStatus.IN_PROGRESS]] == ["g2"]
        assert columns[GigStatus.ARCHIVED] == []

    def test_drop_noop_returns_same_board(self, gigs):
        board = BoardState(gigs)
        new_board, moved = board.drop("g3", "Completed")
        assert new_board is board
        assert moved is None

    def test_drop_returns_new_board(self, gigs):
        milestones = {"g1": [Milestone(id="m1")]}
        board = BoardState(gigs, milestones)
        new_board, moved = board.drop("g1", GigStatus.COMPLETED)
        assert new_board is not board
        assert new_board.gig("g1").status == GigStatus.COMPLETED
        assert board.gig("g1").status == GigStatus.OPEN
        assert new_board.milestones_for("g1")[0].id == "m1"

    def test_unknown_gig(self, gigs):
        with pytest.raises(UnknownGigError):
            BoardState(gigs).gig("missing")

    def test_milestones_for_missing_gig(self, gigs):
        assert BoardState(gigs).milestones_for("g2") == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
