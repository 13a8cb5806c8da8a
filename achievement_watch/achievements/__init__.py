"""
Achievement tracking package.

This package provides:
- Achievement records and snapshots
- Unlock detection between consecutive snapshots
- Rarity classification
- Per-session polling engine
"""

from .models import AchievementRecord, Snapshot, Rarity, diff_snapshots, classify_rarity
from .engine import AchievementDiffEngine
from .sources import JsonSnapshotSource, no_achievements

__all__ = [
    "AchievementRecord",
    "Snapshot",
    "Rarity",
    "diff_snapshots",
    "classify_rarity",
    "AchievementDiffEngine",
    "JsonSnapshotSource",
    "no_achievements",
]
