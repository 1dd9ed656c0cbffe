"""
Alarm severities, per-equipment status records and the alarm aggregator.

The aggregator polls every source on a fixed interval, keeps only the
alarms of the single worst severity present and reports a change only when
the filtered set differs from the previous poll.
"""
import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class AlarmSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"
    OFF = "off"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @property
    def is_reportable(self) -> bool:
        return self in (AlarmSeverity.ERROR, AlarmSeverity.WARNING, AlarmSeverity.INFO)


_SEVERITY_RANK = {
    AlarmSeverity.ERROR: 3,
    AlarmSeverity.WARNING: 2,
    AlarmSeverity.INFO: 1,
    AlarmSeverity.SUCCESS: 0,
    AlarmSeverity.OFF: -1,
}


@dataclass(frozen=True)
class AlarmStatus:
    """Status line reported by a single piece of equipment."""
    severity: AlarmSeverity
    message: str


@dataclass(frozen=True)
class Alarm:
    """An alarm tagged with the equipment that raised it."""
    severity: AlarmSeverity
    message: str
    asset_id: str
    equipment_type: str
    equipment_index: int

    def to_dict(self) -> dict:
        data = asdict(self)
        data['severity'] = self.severity.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Alarm':
        values = dict(data)
        values['severity'] = AlarmSeverity(values['severity'])
        return cls(**values)


@dataclass
class AlarmSnapshot:
    """Aggregated alarm state: all alarms of the worst severity present."""
    severity: AlarmSeverity = AlarmSeverity.SUCCESS
    alarms: List[Alarm] = field(default_factory=list)

    @property
    def is_stable(self) -> bool:
        return not self.alarms

    def to_dict(self) -> dict:
        return {
            'severity': self.severity.value,
            'alarms': [a.to_dict() for a in self.alarms],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AlarmSnapshot':
        return cls(
            severity=AlarmSeverity(data.get('severity', AlarmSeverity.SUCCESS.value)),
            alarms=[Alarm.from_dict(a) for a in data.get('alarms', [])],
        )


# (equipment_type, equipment_index, statuses)
AlarmSourceEntry = Tuple[str, int, List[AlarmStatus]]


def aggregate_alarms(alarms: Iterable[Alarm]) -> AlarmSnapshot:
    """
    Keep every alarm of the single highest reportable severity.

    Args:
        alarms: Candidate alarms, any severity

    Returns:
        AlarmSnapshot; stable (SUCCESS, no alarms) when nothing is reportable
    """
    reportable = [a for a in alarms if a.severity.is_reportable]
    if not reportable:
        return AlarmSnapshot()

    worst = max(a.severity.rank for a in reportable)
    top = [a for a in reportable if a.severity.rank == worst]
    return AlarmSnapshot(severity=top[0].severity, alarms=top)


class AlarmAggregator:
    """
    Polls alarm sources on a fixed interval and reports changes only.

    Changes are returned from :meth:`update` and, when supplied, passed to
    the ``on_change`` callback. There is no global event channel.
    """

    def __init__(self, asset_id: str, poll_interval_ms: float = 1000.0,
                 on_change: Optional[Callable[[AlarmSnapshot], None]] = None):
        self.asset_id = asset_id
        self.poll_interval_ms = poll_interval_ms
        self.on_change = on_change

        self.current = AlarmSnapshot()
        self._last_hash: Optional[str] = None
        self._since_poll_ms = 0.0
        self._has_polled = False

    def update(self, dt_ms: float,
               collect: Callable[[], Iterable[AlarmSourceEntry]]) -> Optional[AlarmSnapshot]:
        """
        Advance the poll timer and poll when the interval has elapsed.

        The first call always polls.

        Args:
            dt_ms: Milliseconds since the previous update
            collect: Callable returning the current alarm source entries

        Returns:
            The new AlarmSnapshot if the filtered set changed, otherwise None
        """
        self._since_poll_ms += dt_ms
        if self._has_polled and self._since_poll_ms < self.poll_interval_ms:
            return None

        # Keep the overshoot so the poll period does not drift
        self._since_poll_ms = self._since_poll_ms % self.poll_interval_ms if self._has_polled else 0.0
        self._has_polled = True
        return self.poll(collect())

    def poll(self, entries: Iterable[AlarmSourceEntry]) -> Optional[AlarmSnapshot]:
        alarms = []
        for equipment_type, index, statuses in entries:
            for status in statuses:
                if not status.severity.is_reportable:
                    continue
                alarms.append(Alarm(
                    severity=status.severity,
                    message=status.message,
                    asset_id=self.asset_id,
                    equipment_type=equipment_type,
                    equipment_index=index,
                ))

        snapshot = aggregate_alarms(alarms)
        data_hash = self._content_hash(snapshot)

        # Skip if the filtered set has not changed (first poll excepted)
        if self._last_hash is not None and data_hash == self._last_hash:
            return None

        self._last_hash = data_hash
        self.current = snapshot

        if snapshot.is_stable:
            logger.info(f"[{self.asset_id}] Alarm state stable")
        else:
            logger.info(f"[{self.asset_id}] Alarm state {snapshot.severity.value}: "
                        f"{len(snapshot.alarms)} alarm(s)")

        if self.on_change is not None:
            self.on_change(snapshot)
        return snapshot

    @staticmethod
    def _content_hash(snapshot: AlarmSnapshot) -> str:
        flat = json.dumps(snapshot.to_dict(), sort_keys=True)
        return hashlib.md5(flat.encode()).hexdigest()

    # -----------------------------------------------------
    # Persistence
    # -----------------------------------------------------

    def to_dict(self) -> dict:
        return {
            'current': self.current.to_dict(),
            'last_hash': self._last_hash,
            'since_poll_ms': self._since_poll_ms,
            'has_polled': self._has_polled,
        }

    def restore(self, data: dict) -> None:
        """Restore poll state without notifying ``on_change``."""
        self.current = AlarmSnapshot.from_dict(data.get('current', {}))
        self._last_hash = data.get('last_hash')
        self._since_poll_ms = float(data.get('since_poll_ms', 0.0))
        self._has_polled = bool(data.get('has_polled', False))
