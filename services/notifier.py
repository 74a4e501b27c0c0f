import asyncio
import hmac
from typing import Awaitable, Callable, Optional, Set, Union

from logging_config import get_logger
from schemas.admin import AdminSnapshot, AdminStats, DebugSnapshot
from schemas.events import OutboundEvent
from services.emitter import Emitter
from services.matchmaker import Matchmaker
from services.presence import PresenceRegistry
from services.rooms import RoomManager

logger = get_logger(__name__)


def secrets_match(expected: Optional[str], supplied) -> bool:
    """Constant-time comparison; an unset expected secret never matches."""
    if not expected or not isinstance(supplied, str):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


class MessageCounter:
    """Process-lifetime message total. Never decreases."""

    def __init__(self):
        self._total = 0

    @property
    def total(self) -> int:
        return self._total

    def increment(self) -> int:
        self._total += 1
        return self._total


class BroadcastNotifier:
    """Pushes the aggregate snapshot to authenticated admin observers."""

    def __init__(
        self,
        registry: PresenceRegistry,
        rooms: RoomManager,
        matchmaker: Matchmaker,
        counter: MessageCounter,
        emitter: Emitter,
        admin_secret: Optional[str],
    ):
        self._registry = registry
        self._rooms = rooms
        self._matchmaker = matchmaker
        self._counter = counter
        self._emitter = emitter
        self._admin_secret = admin_secret
        self._observers: Set[str] = set()

    @property
    def observers(self) -> Set[str]:
        return set(self._observers)

    def is_observer(self, participant_id: str) -> bool:
        return participant_id in self._observers

    def has_observers(self) -> bool:
        return bool(self._observers)

    def authenticate(self, participant_id: str, supplied_secret) -> bool:
        if not secrets_match(self._admin_secret, supplied_secret):
            logger.warning(f"Admin authentication failed for {participant_id}")
            return False

        self._observers.add(participant_id)
        logger.info(f"Admin authenticated: {participant_id}. Total admins: {len(self._observers)}")
        self._emitter.emit_to_one(participant_id, OutboundEvent.ADMIN_AUTH_SUCCESS)
        self._emitter.emit_to_one(participant_id, OutboundEvent.ADMIN_DATA, self._serialize(self.build_snapshot()))
        return True

    def discard(self, participant_id: str):
        if participant_id in self._observers:
            self._observers.discard(participant_id)
            logger.info(f"Admin observer {participant_id} removed. Total admins: {len(self._observers)}")

    def build_snapshot(self) -> AdminSnapshot:
        rooms = self._rooms.snapshot()
        return AdminSnapshot(
            participants=[participant.model_copy() for participant in self._registry.all()],
            waiting_slot_id=self._matchmaker.waiting_slot_id,
            rooms=rooms,
            stats=AdminStats(
                total_online=self._registry.count(),
                total_rooms=len(rooms),
                waiting_count=self._matchmaker.waiting_count(),
                total_messages=self._counter.total,
            ),
        )

    def build_debug_snapshot(self) -> DebugSnapshot:
        snapshot = self.build_snapshot()
        return DebugSnapshot(**dict(snapshot), admin_observers=sorted(self._observers))

    def publish(self) -> int:
        """Send a fresh snapshot to every observer; returns how many got it."""
        if not self._observers:
            return 0
        payload = self._serialize(self.build_snapshot())
        logger.debug(f"Sending admin update to {len(self._observers)} admins")
        for observer_id in list(self._observers):
            self._emitter.emit_to_one(observer_id, OutboundEvent.ADMIN_DATA, payload)
        return len(self._observers)

    @staticmethod
    def _serialize(snapshot: AdminSnapshot) -> dict:
        return snapshot.model_dump(mode="json", by_alias=True)


class PeriodicPublisher:
    """Runs ``publish`` every ``interval`` seconds on the running event loop.

    A tick is skipped while ``is_idle()`` is true. The task lives on the same
    loop as the websocket handlers, so it never observes a half-applied event.
    """

    def __init__(
        self,
        interval: float,
        publish: Callable[[], Union[object, Awaitable[object]]],
        is_idle: Callable[[], bool] = lambda: False,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._publish = publish
        self._is_idle = is_idle
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Periodic admin publish started (every {self.interval}s)")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Periodic admin publish stopped")

    async def tick(self):
        if self._is_idle():
            return
        result = self._publish()
        if asyncio.iscoroutine(result):
            await result

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Periodic admin publish failed: {e}", exc_info=True)
