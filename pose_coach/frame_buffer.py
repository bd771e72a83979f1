# pose_coach/frame_buffer.py

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, Optional, Tuple

from .config import FRAME_BUFFER_CAPACITY, TIMESTAMP_EPSILON
from .feedback import FeedbackEvent
from .pose_utils import AngleSet


@dataclass(frozen=True)
class FrameRecord:
    angles: AngleSet
    feedback: FeedbackEvent
    timestamp: float


class FrameBuffer:
    """
    Rolling window of the most recent frame records.

    Appending to a full buffer drops the oldest record, so len() never
    exceeds ``capacity`` however long the session runs.
    """

    def __init__(self, capacity: int = FRAME_BUFFER_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._records: Deque[FrameRecord] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._records.maxlen

    def append(self, record: FrameRecord) -> None:
        self._records.append(record)

    def records(self) -> Tuple[FrameRecord, ...]:
        """Snapshot, oldest first."""
        return tuple(self._records)

    @property
    def latest(self) -> Optional[FrameRecord]:
        return self._records[-1] if self._records else None

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FrameRecord]:
        return iter(tuple(self._records))


class TimestampSequencer:
    """
    Keeps frame timestamps strictly increasing.

    A timestamp that does not move forward is replaced by the previous one
    plus ``epsilon`` instead of being rejected.
    """

    def __init__(self, epsilon: float = TIMESTAMP_EPSILON):
        if epsilon <= 0:
            raise ValueError(f"epsilon must be > 0, got {epsilon}")
        self.epsilon = epsilon
        self.last: Optional[float] = None

    def next(self, timestamp: float) -> float:
        if self.last is not None and not timestamp > self.last:
            timestamp = self.last + self.epsilon
        self.last = timestamp
        return timestamp
