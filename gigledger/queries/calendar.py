"""
Milestone Calendar Index

Milestones of all gigs keyed by the UTC day of their due date
(YYYY-MM-DD). A milestone without a parseable due date is left out.
"""

from datetime import date, datetime, timezone
from typing import Mapping, Optional, Union

from gigledger.models.common import day_key
from gigledger.models.gigs import Milestone


DayLike = Union[str, date, datetime]


def _key_for(value: DayLike) -> str:
    if isinstance(value, datetime):
        return day_key(value if value.tzinfo else value.replace(tzinfo=timezone.utc))
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


class MilestoneCalendarIndex:
    """
    Read-only day -> milestones lookup.

    Built once per load from the gig id -> milestones map. The gig each
    milestone belongs to is remembered so edit/delete/invoice actions
    from the calendar can find it.
    """

    def __init__(self, milestones_by_gig: Mapping[str, list[Milestone]]):
        self._by_day: dict[str, list[Milestone]] = {}
        self._gig_by_milestone: dict[str, str] = {}

        for gig_id, milestones in milestones_by_gig.items():
            for milestone in milestones or []:
                if milestone.id:
                    self._gig_by_milestone[milestone.id] = milestone.gig_id or gig_id
                key = milestone.due_day
                if key is None:
                    continue
                self._by_day.setdefault(key, []).append(milestone)

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_day.values())

    def day(self, value: DayLike) -> list[Milestone]:
        """Milestones due on a day; [] when there are none."""
        return list(self._by_day.get(_key_for(value), []))

    def has_milestones(self, value: DayLike) -> bool:
        return _key_for(value) in self._by_day

    def highlighted_days(self) -> list[str]:
        return sorted(self._by_day)

    def milestones_in_month(self, year: int, month: int) -> dict[str, list[Milestone]]:
        prefix = f"{year:04d}-{month:02d}-"
        return {
            key: list(items)
            for key, items in sorted(self._by_day.items())
            if key.startswith(prefix)
        }

    def gig_id_for(self, milestone_id: str) -> Optional[str]:
        return self._gig_by_milestone.get(milestone_id)
