"""
Trigger arbitration for the JoyPet Relay service.

``TriggerArbiter`` owns the session and is the only writer to it. Touch,
speech and smile producers either post ``TriggerEvent``s into its inbox or
call ``trigger`` directly; both paths go through one critical section, so
the session is mutated by one call at a time.

State machine::

    idle --trigger (not cooling down)--> joyful
    joyful --media ended + return delay--> idle
    any --select_pet--> idle (pending return cancelled)
"""

import asyncio
import logging
import time
from collections.abc import Callable

from .errors import AssetUnavailableError, UnknownPetError
from .models import (
    DisplayState,
    Pet,
    RejectReason,
    Session,
    TriggerEvent,
    TriggerOutcome,
    TriggerSource,
)
from .presentation import IdleReason, PresentationSink
from .registry import PetRegistry

logger = logging.getLogger(__name__)

RETURN_DELAY = 3.0
DEFAULT_COOLDOWN = 0.8
# Keeps a trigger exactly one window later from failing on float rounding.
_TOLERANCE = 1e-9


class TriggerArbiter:
    """
    The idle/joyful state controller.

    Args:
        registry: Pets that may be selected
        sink: Receives render instructions, inside the critical section
        default_pet_id: Pet shown at startup (first registered pet if None)
        cooldown: Seconds required between two accepted triggers, any source
        return_delay: Seconds between "joy media ended" and the return to idle
        clock: Monotonic time source
    """

    def __init__(
        self,
        registry: PetRegistry,
        sink: PresentationSink,
        *,
        default_pet_id: str | None = None,
        cooldown: float = DEFAULT_COOLDOWN,
        return_delay: float = RETURN_DELAY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        pet = registry.default if default_pet_id is None else registry.resolve(default_pet_id)
        self._registry = registry
        self._sink = sink
        self._session = Session(pet=pet)
        self._cooldown = cooldown
        self._return_delay = return_delay
        self._clock = clock
        self._lock = asyncio.Lock()
        self._inbox: asyncio.Queue[TriggerEvent] = asyncio.Queue()
        self._pending_return: asyncio.Task[None] | None = None

    @property
    def registry(self) -> PetRegistry:
        return self._registry

    @property
    def return_pending(self) -> bool:
        return self._pending_return is not None

    def snapshot(self) -> Session:
        """Copy of the current session."""
        return self._session.model_copy()

    def now(self) -> float:
        return self._clock()

    # MARK: - Operations

    async def start(self) -> None:
        """Show the initial pet's idle image."""
        async with self._lock:
            await self._render_idle(IdleReason.STARTUP)

    async def select_pet(self, pet_id: str) -> Session:
        """
        Switch to another pet and show it idle.

        Any joy presentation in progress is interrupted and its pending
        return-to-idle is cancelled. The cooldown is not consumed.

        Raises:
            UnknownPetError: if the pet is not registered (nothing changes)
        """
        pet = self._registry.resolve(pet_id)
        async with self._lock:
            await self._switch_pet(pet)
            return self.snapshot()

    async def trigger(
        self,
        source: TriggerSource,
        pet_override: str | None = None,
        arrived_at: float | None = None,
    ) -> TriggerOutcome:
        """
        Offer a stimulus to the state machine.

        Args:
            source: Which modality produced the stimulus
            pet_override: Pet named by the stimulus; switched to first
            arrived_at: Monotonic arrival time, defaults to now

        Returns:
            Whether the trigger was accepted, and the resulting session

        Raises:
            UnknownPetError: if ``pet_override`` is not registered (nothing changes)
        """
        if arrived_at is None:
            arrived_at = self._clock()
        override = None if pet_override is None else self._registry.resolve(pet_override)

        async with self._lock:
            session = self._session
            if override is not None and override.id != session.pet.id:
                await self._switch_pet(override)

            if session.state is DisplayState.JOYFUL:
                logger.debug("Dropped %s trigger: already joyful", source.value)
                return self._outcome(RejectReason.JOYFUL)

            if (
                session.last_trigger_at is not None
                and arrived_at - session.last_trigger_at
                < self._cooldown - _TOLERANCE
            ):
                logger.debug("Dropped %s trigger: cooling down", source.value)
                return self._outcome(RejectReason.COOLDOWN)

            session.last_trigger_at = arrived_at
            session.state = DisplayState.JOYFUL
            session.presentation_id += 1
            logger.info("%s is joyful (%s)", session.pet.id, source.value)

            try:
                await self._sink.render_joyful(session.pet, session.presentation_id)
            except AssetUnavailableError as e:
                logger.warning("Degraded joy presentation: %s", e)
                if "joy_video" in e.kinds:
                    # No playback, so no "ended" signal will ever arrive.
                    self._schedule_return(session.presentation_id)

            return self._outcome(None)

    async def media_ended(self, presentation_id: int | None = None) -> bool:
        """
        Handle the "joy media playback ended" signal.

        Args:
            presentation_id: The presentation that ended; None means the
                current one

        Returns:
            True if a return to idle was scheduled
        """
        async with self._lock:
            session = self._session
            if session.state is not DisplayState.JOYFUL:
                return False
            if presentation_id is not None and presentation_id != session.presentation_id:
                logger.debug("Ignored end of stale presentation %d", presentation_id)
                return False
            if self._pending_return is not None:
                return False

            self._schedule_return(session.presentation_id)
            return True

    # MARK: - Inbox

    def post(self, event: TriggerEvent) -> None:
        """Queue a trigger without waiting for it to be handled."""
        self._inbox.put_nowait(event)

    async def run(self) -> None:
        """Handle posted triggers one at a time, forever."""
        while True:
            event = await self._inbox.get()
            try:
                await self.trigger(event.source, event.pet_id, event.arrived_at)
            except UnknownPetError as e:
                logger.warning("Dropped %s trigger: %s", event.source.value, e)
            finally:
                self._inbox.task_done()

    async def drain(self) -> None:
        """Wait until every posted trigger has been handled."""
        await self._inbox.join()

    # MARK: - Private Helpers

    def _outcome(self, rejected_by: RejectReason | None) -> TriggerOutcome:
        return TriggerOutcome(
            accepted=rejected_by is None, rejected_by=rejected_by, session=self.snapshot()
        )

    async def _switch_pet(self, pet: Pet) -> None:
        self._cancel_pending_return()
        session = self._session
        session.pet = pet
        session.state = DisplayState.IDLE
        # Invalidates "ended" signals from the interrupted presentation.
        session.presentation_id += 1
        logger.info("Selected %s", pet.id)
        await self._render_idle(IdleReason.SELECT)

    async def _render_idle(self, reason: IdleReason) -> None:
        try:
            await self._sink.render_idle(self._session.pet, reason)
        except AssetUnavailableError as e:
            logger.warning("Degraded idle presentation: %s", e)

    def _schedule_return(self, presentation_id: int) -> None:
        self._pending_return = asyncio.get_running_loop().create_task(
            self._return_to_idle(presentation_id)
        )

    def _cancel_pending_return(self) -> None:
        if self._pending_return is not None:
            self._pending_return.cancel()
            self._pending_return = None

    async def _return_to_idle(self, presentation_id: int) -> None:
        await asyncio.sleep(self._return_delay)
        async with self._lock:
            session = self._session
            if (
                session.presentation_id != presentation_id
                or session.state is not DisplayState.JOYFUL
            ):
                return
            self._pending_return = None
            session.state = DisplayState.IDLE
            logger.info("%s is idle again", session.pet.id)
            await self._render_idle(IdleReason.RETURNED)
