"""
Snapshot sources usable without a live achievement API.
"""

import json
import logging
from pathlib import Path
from typing import List, Union

from ..streaming.session import Session
from .models import AchievementRecord

logger = logging.getLogger(__name__)


class JsonSnapshotSource:
    """
    Reads achievement records from a JSON file on every poll.

    The file maps application ids to record lists::

        {"480": [{"apiname": "ACH_WIN_ONE_GAME", "unlocked": true, "percent": 4.2}]}

    Whatever writes the file (a helper process, a test harness) controls
    what the engine sees.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __call__(self, session: Session) -> List[AchievementRecord]:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)

        entries = data.get(str(session.appid), [])
        records = [AchievementRecord.from_dict(entry) for entry in entries]
        logger.debug(f"Loaded {len(records)} records for AppID {session.appid} from {self.path}")
        return records


def no_achievements(session: Session) -> List[AchievementRecord]:
    """
    Source for running without achievement data.

    The empty baseline makes the engine skip polling, so only session
    notifications are sent.
    """
    return []
