import csv
import logging
import os
import threading
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Protocol

from .sim import STAT_KEYS
from .world import ElementView, MapSnapshot

logger = logging.getLogger(__name__)


class MapChangeListener(Protocol):
    def map_changed(self, snapshot: MapSnapshot, message: str) -> None:
        ...


class ConsoleListener:
    """Log each completed day with its statistics."""

    def __init__(self, every: int = 1):
        self.every = max(1, every)

    def map_changed(self, snapshot: MapSnapshot, message: str) -> None:
        if snapshot.day % self.every:
            return
        s = snapshot.stats
        logger.info(
            f"{message} | avg_energy={s['avg_energy']:.1f} avg_age={s['avg_age']:.1f} "
            f"avg_lifespan={s['avg_lifespan']:.1f} dominant={s['dominant_genome'] or '-'}"
        )


class StatsHistory:
    """Keep every day's statistics in memory."""

    def __init__(self):
        self.rows: List[Dict[str, object]] = []
        self.messages: List[str] = []
        self._lock = threading.Lock()

    def map_changed(self, snapshot: MapSnapshot, message: str) -> None:
        with self._lock:
            self.rows.append(dict(snapshot.stats))
            self.messages.append(message)

    def series(self, key: str) -> List[object]:
        with self._lock:
            return [row[key] for row in self.rows]

    @property
    def days(self) -> List[int]:
        return self.series("day")


TRACKED_KEYS = (
    "tracked_id", "tracked_energy", "tracked_lifespan",
    "tracked_children", "tracked_position", "tracked_direction",
)


class StatsCsvWriter:
    """
    Append one row of statistics per day to a CSV file. The header is written
    when the file is new; the column set is fixed so rows always line up.

    With ``tracked_id`` the row also carries that animal's energy, age,
    children, position and direction. Once the animal is gone the tracked
    columns stay empty and its death is logged once.
    """
    fieldnames = ("timestamp",) + STAT_KEYS + TRACKED_KEYS

    def __init__(self, path: str = "runs/simulation_stats.csv", overwrite: bool = False,
                 tracked_id: Optional[int] = None):
        self.path = path
        self.tracked_id = tracked_id
        self._tracked_seen = False
        self._lock = threading.Lock()
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        if overwrite and os.path.exists(self.path):
            os.remove(self.path)
        if not os.path.exists(self.path):
            with open(self.path, "w", newline="") as f:
                csv.DictWriter(f, fieldnames=self.fieldnames).writeheader()

    def row(self, stats: Mapping[str, object], timestamp: Optional[datetime] = None,
            tracked: Optional[ElementView] = None) -> Dict[str, object]:
        ts = (timestamp or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        row = dict(timestamp=ts, **{k: stats[k] for k in STAT_KEYS})
        row.update(dict.fromkeys(TRACKED_KEYS, ""))
        if tracked is not None:
            row.update(
                tracked_id=tracked.id,
                tracked_energy=tracked.energy,
                tracked_lifespan=tracked.age,
                tracked_children=tracked.children,
                tracked_position=str(tracked.position),
                tracked_direction=str(tracked.direction),
            )
        return row

    def _find_tracked(self, snapshot: MapSnapshot) -> Optional[ElementView]:
        if self.tracked_id is None:
            return None
        found = next((a for a in snapshot.animals() if a.id == self.tracked_id), None)
        if found is not None:
            self._tracked_seen = True
        elif self._tracked_seen:
            logger.info(f"[{snapshot.day}] TRACKED_DEATH id={self.tracked_id}: tracked animal died")
            self.tracked_id = None
        return found

    def map_changed(self, snapshot: MapSnapshot, message: str) -> None:
        with self._lock, open(self.path, "a", newline="") as f:
            tracked = self._find_tracked(snapshot)
            csv.DictWriter(f, fieldnames=self.fieldnames).writerow(self.row(snapshot.stats, tracked=tracked))
