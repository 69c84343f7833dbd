import itertools
import threading
import weakref
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional, Protocol
from uuid import uuid4

import structlog

from catalog import Badge, badges as catalog_badges

from .models import Challenge, LeaderboardEntry, ProgressRecord


log = structlog.get_logger(__name__)


class ProgressError(Exception):
    pass


class InvalidPointsError(ProgressError, ValueError):
    pass


class ProgressStore(Protocol):
    def get(self, user_id: str) -> Optional[ProgressRecord]: ...
    def put(self, record: ProgressRecord) -> None: ...
    def delete(self, user_id: str) -> bool: ...
    def records(self) -> list[ProgressRecord]: ...
    def get_challenge(self, challenge_id: str) -> Optional[Challenge]: ...
    def put_challenge(self, challenge: Challenge) -> None: ...


class InMemoryProgressStore:
    def __init__(self):
        self._records: dict[str, ProgressRecord] = {}
        self._challenges: dict[str, Challenge] = {}

    def get(self, user_id: str) -> Optional[ProgressRecord]:
        return self._records.get(user_id)

    def put(self, record: ProgressRecord) -> None:
        self._records[record.user_id] = record

    def delete(self, user_id: str) -> bool:
        return self._records.pop(user_id, None) is not None

    def records(self) -> list[ProgressRecord]:
        return list(self._records.values())

    def get_challenge(self, challenge_id: str) -> Optional[Challenge]:
        return self._challenges.get(challenge_id)

    def put_challenge(self, challenge: Challenge) -> None:
        self._challenges[challenge.id] = challenge


class Leaderboard:
    """
    Ranking view over a progress store.

    Nothing is computed until iteration, and each iteration re-reads the
    store, so the same object can be walked repeatedly.
    """

    def __init__(self, store: ProgressStore, limit: int):
        self._store = store
        self.limit = max(0, limit)

    def __iter__(self) -> Iterator[LeaderboardEntry]:
        ranked = sorted(self._store.records(), key=lambda r: (-r.total_points, r.registered_seq))
        for rank, record in enumerate(ranked[:self.limit], start=1):
            yield LeaderboardEntry(
                rank=rank,
                user_id=record.user_id,
                total_points=record.total_points,
                level=record.level,
                badge_count=len(record.badges_earned),
            )


class ProgressEngine:
    def __init__(self, store: Optional[ProgressStore] = None, badge_catalog: Optional[Iterable[Badge]] = None):
        self.store = store or InMemoryProgressStore()
        catalog = catalog_badges() if badge_catalog is None else badge_catalog
        self.badges: tuple[Badge, ...] = tuple(sorted(catalog, key=lambda b: (b.point_requirement, b.id)))
        self._seq = itertools.count(len(self.store.records()))
        # a user lock lives only while some caller holds it
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()
        self._challenges_lock = threading.Lock()

    def add_points(self, user_id: str, amount: int) -> ProgressRecord:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidPointsError(f"Points must be a non-negative integer, got {amount!r}")
        with self._lock_for(user_id):
            return self._add_points(user_id, amount)

    def evaluate_badges(self, user_id: str) -> list[Badge]:
        with self._lock_for(user_id):
            record = self.store.get(user_id)
            if record is None:
                return []
            held = set(record.badges_earned)
            awarded = [
                b for b in self.badges
                if b.id not in held and b.point_requirement <= record.total_points
            ]
            if awarded:
                self.store.put(record.model_copy(
                    update={"badges_earned": record.badges_earned + [b.id for b in awarded]}
                ))
                log.info("badges_awarded", user_id=user_id, badges=[b.id for b in awarded])
            return awarded

    def create_challenge(self, title: str, description: str, reward: int, duration_days: int = 7) -> Challenge:
        if isinstance(reward, bool) or not isinstance(reward, int) or reward < 0:
            raise InvalidPointsError(f"Challenge reward must be a non-negative integer, got {reward!r}")
        challenge = Challenge(
            id=f"challenge_{uuid4().hex[:12]}",
            title=title,
            description=description,
            duration_days=duration_days,
            reward=reward,
            created_at=datetime.now(timezone.utc),
        )
        self.store.put_challenge(challenge)
        return challenge

    def get_challenge(self, challenge_id: str) -> Optional[Challenge]:
        return self.store.get_challenge(challenge_id)

    def join_challenge(self, user_id: str, challenge_id: str) -> bool:
        with self._challenges_lock:
            challenge = self.store.get_challenge(challenge_id)
            if challenge is None:
                return False
            if user_id not in challenge.participant_ids:
                self.store.put_challenge(challenge.model_copy(
                    update={"participant_ids": challenge.participant_ids + [user_id]}
                ))
        return True

    def complete_challenge(self, user_id: str, challenge_id: str, reward_points: Optional[int] = None) -> int:
        """
        Credit a challenge's reward to the user and return it.

        Unknown challenges and challenges the user already completed yield 0
        and leave the record untouched.
        """
        challenge = self.store.get_challenge(challenge_id)
        if challenge is None:
            return 0
        reward = challenge.reward if reward_points is None else reward_points
        if isinstance(reward, bool) or not isinstance(reward, int) or reward < 0:
            raise InvalidPointsError(f"Reward must be a non-negative integer, got {reward!r}")

        with self._lock_for(user_id):
            record = self._get_or_register(user_id)
            if challenge_id in record.completed_challenge_ids:
                return 0
            self.store.put(record.model_copy(update={
                "challenges_completed": record.challenges_completed + 1,
                "completed_challenge_ids": record.completed_challenge_ids + [challenge_id],
            }))
            self._add_points(user_id, reward)
        return reward

    def get_progress(self, user_id: str) -> Optional[ProgressRecord]:
        return self.store.get(user_id)

    def delete_progress(self, user_id: str) -> bool:
        with self._lock_for(user_id):
            return self.store.delete(user_id)

    def leaderboard(self, limit: int = 10) -> Leaderboard:
        return Leaderboard(self.store, limit)

    def rank_of(self, user_id: str) -> Optional[int]:
        for entry in self.leaderboard(len(self.store.records())):
            if entry.user_id == user_id:
                return entry.rank
        return None

    def _add_points(self, user_id: str, amount: int) -> ProgressRecord:
        # caller holds the user lock
        record = self._get_or_register(user_id)
        updated = record.model_copy(update={"total_points": record.total_points + amount})
        self.store.put(updated)
        if updated.level > record.level:
            log.info("level_up", user_id=user_id, level=updated.level)
        return updated

    def _get_or_register(self, user_id: str) -> ProgressRecord:
        record = self.store.get(user_id)
        if record is None:
            record = ProgressRecord(user_id=user_id, registered_seq=next(self._seq))
            self.store.put(record)
        return record

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock
