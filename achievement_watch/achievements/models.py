"""
Achievement records, snapshots and the pure diff/rarity logic.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


class Rarity(Enum):
    """Notification tier derived from global unlock percentage."""

    RARE = "rare"
    SEMI_RARE = "semi-rare"
    MAIN = "main"


@dataclass(frozen=True)
class AchievementRecord:
    """One achievement as reported by the achievement data source."""

    apiname: str
    unlocked: bool
    percent: float = 100.0
    unlock_time: Optional[datetime] = None

    # Display metadata
    display_name: Optional[str] = None
    description: Optional[str] = None
    hidden: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AchievementRecord":
        """Build a record from a JSON-style mapping."""
        unlock_time = data.get("unlock_time") or data.get("unlocktime")
        if isinstance(unlock_time, (int, float)):
            unlock_time = datetime.fromtimestamp(unlock_time) if unlock_time > 0 else None
        elif isinstance(unlock_time, str):
            unlock_time = datetime.fromisoformat(unlock_time)

        return cls(
            apiname=str(data["apiname"]),
            unlocked=bool(data.get("unlocked", data.get("achieved", False))),
            percent=float(data.get("percent", 100.0)),
            unlock_time=unlock_time,
            display_name=data.get("display_name") or data.get("name"),
            description=data.get("description"),
            hidden=bool(data.get("hidden", False)),
        )


@dataclass(frozen=True)
class Snapshot:
    """All achievement records of one session at one poll instant."""

    records: Tuple[AchievementRecord, ...] = ()
    taken_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def of(cls, records: Iterable[AchievementRecord]) -> "Snapshot":
        return cls(records=tuple(records))

    def by_apiname(self) -> Dict[str, AchievementRecord]:
        return {record.apiname: record for record in self.records}

    @property
    def unlocked_count(self) -> int:
        return sum(1 for record in self.records if record.unlocked)

    def __len__(self) -> int:
        return len(self.records)


def diff_snapshots(previous: Snapshot, current: Snapshot) -> List[AchievementRecord]:
    """
    Find records newly unlocked between two consecutive snapshots.

    A record counts when it is unlocked in ``current`` and either absent or
    locked in ``previous``. The result is sorted by apiname.
    """
    before = previous.by_apiname()
    newly_unlocked = {}
    for record in current.records:
        if not record.unlocked:
            continue
        old = before.get(record.apiname)
        if old is None or not old.unlocked:
            newly_unlocked[record.apiname] = record
    return [newly_unlocked[name] for name in sorted(newly_unlocked)]


def classify_rarity(
    percent: float,
    rarity_threshold: float,
    semi_rarity_threshold: float,
    trophy_mode: bool = False,
) -> Rarity:
    """
    Classify an achievement by global unlock percentage.

    Args:
        percent: Global unlock percentage (0-100)
        rarity_threshold: At or below this it is rare
        semi_rarity_threshold: At or below this it is semi-rare (trophy mode only)
        trophy_mode: Whether the semi-rare tier is in use

    Returns:
        Rarity tier
    """
    if percent <= rarity_threshold:
        return Rarity.RARE
    if trophy_mode and percent <= semi_rarity_threshold:
        return Rarity.SEMI_RARE
    return Rarity.MAIN
