"""
Presentation boundary for the JoyPet Relay service.

The state machine tells a ``PresentationSink`` what to show. ``RenderFeed`` is
the in-memory sink used by the server: it keeps the latest render instruction
and streams every new one to any number of subscribers (SSE clients) using
event-based signaling instead of queues.
"""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Protocol

from .config import MessageConfig
from .errors import AssetUnavailableError
from .models import DisplayState, Pet, RenderEvent


class IdleReason(str, Enum):
    STARTUP = "startup"
    SELECT = "select"
    RETURNED = "returned"


class PresentationSink(Protocol):
    async def render_idle(self, pet: Pet, reason: IdleReason) -> None: ...

    async def render_joyful(self, pet: Pet, presentation_id: int) -> None: ...


class RenderFeed:
    """
    In-memory render feed with real-time streaming capabilities.

    Rendering never waits on clients; it only records the instruction and
    wakes subscribers. If ``asset_root`` is set, referenced assets are checked
    and missing ones are reported with ``AssetUnavailableError`` after the
    degraded instruction has been published.
    """

    def __init__(
        self, messages: MessageConfig | None = None, asset_root: Path | None = None
    ) -> None:
        self._messages = messages or MessageConfig()
        self._asset_root = asset_root
        self._current: RenderEvent | None = None
        self._condition = asyncio.Condition()
        self._update_counter = 0

    async def render_idle(self, pet: Pet, reason: IdleReason) -> None:
        message = {
            IdleReason.STARTUP: self._messages.startup,
            IdleReason.SELECT: self._messages.select,
            IdleReason.RETURNED: self._messages.returned,
        }[reason]
        missing = self._missing_assets({"idle_image": pet.idle_image})
        await self._publish(
            RenderEvent(
                state=DisplayState.IDLE,
                pet_id=pet.id,
                image=pet.idle_image,
                message=message,
                presentation_id=0,
                timestamp=time.time(),
                missing=missing,
            )
        )
        if missing:
            raise AssetUnavailableError(pet.id, missing)

    async def render_joyful(self, pet: Pet, presentation_id: int) -> None:
        missing = self._missing_assets({"joy_video": pet.joy_video, "sound": pet.sound})
        await self._publish(
            RenderEvent(
                state=DisplayState.JOYFUL,
                pet_id=pet.id,
                video=pet.joy_video,
                sound=pet.sound,
                message=self._messages.joyful,
                presentation_id=presentation_id,
                timestamp=time.time(),
                missing=missing,
            )
        )
        if missing:
            raise AssetUnavailableError(pet.id, missing)

    async def read(self) -> RenderEvent | None:
        """
        Get the latest render instruction.

        Returns:
            The current RenderEvent, or None before anything was rendered
        """
        async with self._condition:
            return self._current

    @asynccontextmanager
    async def stream(
        self,
    ) -> AsyncGenerator[AsyncGenerator[RenderEvent, None], None]:
        """
        Stream render instructions to a subscriber.

        Yields:
            An async generator of RenderEvent objects, starting with the
            current one when there is one
        """

        async def event_generator() -> AsyncGenerator[RenderEvent, None]:
            async with self._condition:
                last_seen_counter = self._update_counter
                current = self._current
            if current is not None:
                yield current

            try:
                while True:
                    async with self._condition:
                        await self._condition.wait_for(
                            lambda: self._update_counter > last_seen_counter
                        )
                        last_seen_counter = self._update_counter
                        current = self._current
                    yield current

            except (asyncio.CancelledError, GeneratorExit):
                # Subscriber disconnected or generator closed
                return

        yield event_generator()

    async def _publish(self, event: RenderEvent) -> None:
        async with self._condition:
            self._current = event
            self._update_counter += 1
            self._condition.notify_all()

    def _missing_assets(self, assets: dict[str, str]) -> list[str]:
        if self._asset_root is None:
            return []
        return [
            kind
            for kind, path in assets.items()
            if not (self._asset_root / path).is_file()
        ]
