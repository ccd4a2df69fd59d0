"""
FastAPI server for the JoyPet Relay service.

This module implements the HTTP API endpoints through which sensory input and
pet selection reach the state machine, and the Server-Sent Events stream
through which presentation clients learn what to show.
"""

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from .config import Settings, load_config
from .errors import UnknownPetError
from .intents import intent_to_trigger
from .modalities import touch_trigger
from .models import (
    ClassifiedIntent,
    Pet,
    PointerEvent,
    RenderEvent,
    Session,
    SpeechResult,
    TriggerOutcome,
    TriggerSource,
    VisionFrame,
)
from .runtime import PetRuntime, build_runtime

logger = logging.getLogger(__name__)


# API Request/Response Schemas
class PetSelection(BaseModel):
    """Payload for pet selection requests."""

    pet_id: str = Field(..., description="Identifier of the pet to show")


class MediaEnded(BaseModel):
    """Payload reporting the end of joy media playback."""

    presentation_id: int | None = Field(
        None, description="Presentation that ended; the current one when omitted"
    )


class SessionResponse(BaseModel):
    session: Session


class TriggerResponse(BaseModel):
    """Response model for endpoints that may trigger the pet."""

    triggered: bool = Field(..., description="Whether a trigger was offered")
    outcome: TriggerOutcome | None = None


class SpeechResponse(TriggerResponse):
    intent: ClassifiedIntent


class MediaEndedResponse(BaseModel):
    scheduled: bool = Field(..., description="Whether a return to idle was scheduled")


class RenderResponse(BaseModel):
    render: RenderEvent | None


def create_app(runtime: PetRuntime) -> FastAPI:
    """
    Create a FastAPI application around the given pet runtime.

    Endpoints call the arbiter directly so they can report the outcome. The
    trigger inbox consumed during the lifespan serves in-process producers
    (``PetRuntime.speech_listener`` and ``PetRuntime.vision_sampler``); both
    paths share the arbiter's critical section.

    Args:
        runtime: The PetRuntime instance to use for the application

    Returns:
        Configured FastAPI application
    """
    arbiter = runtime.arbiter

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Show the initial pet and consume the trigger inbox while running."""
        await arbiter.start()
        inbox_task = asyncio.create_task(arbiter.run())
        yield
        inbox_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await inbox_task

    app = FastAPI(
        title="JoyPet Relay",
        description="A virtual pet that reacts to touch, speech and smiles",
        version="0.1.0",
        lifespan=lifespan,
    )

    async def offer(
        source: TriggerSource, pet_id: str | None, arrived_at: float
    ) -> TriggerOutcome:
        try:
            return await arbiter.trigger(source, pet_id, arrived_at)
        except UnknownPetError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "joypet-relay"}

    @app.get("/pets")
    async def list_pets() -> list[Pet]:
        return list(runtime.registry)

    @app.get("/session")
    async def get_session() -> SessionResponse:
        """
        Get the current session state.

        Returns:
            The selected pet, display state and last trigger time
        """
        return SessionResponse(session=arbiter.snapshot())

    @app.put("/session/pet")
    async def select_pet(selection: PetSelection) -> SessionResponse:
        """
        Switch to another pet, interrupting any joy presentation.

        Raises:
            HTTPException: 404 if the pet is not configured
        """
        try:
            session = await arbiter.select_pet(selection.pet_id)
        except UnknownPetError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return SessionResponse(session=session)

    @app.post("/touch")
    async def touch(pointer: PointerEvent) -> TriggerResponse:
        """Stroke the pet with a touch drag or a mouse drag."""
        event = touch_trigger(pointer, arbiter.now())
        if event is None:
            return TriggerResponse(triggered=False)
        outcome = await offer(event.source, event.pet_id, event.arrived_at)
        return TriggerResponse(triggered=True, outcome=outcome)

    @app.post("/speech")
    async def speech(result: SpeechResult) -> SpeechResponse:
        """
        Classify a recognizer result, interim or final, and react to it.

        Returns:
            The classified intent and, if it produced a trigger, the outcome
        """
        intent = runtime.classifier.classify_utterance(result.text)
        event = intent_to_trigger(intent, arbiter.now())
        if event is None:
            return SpeechResponse(triggered=False, intent=intent)
        outcome = await offer(event.source, event.pet_id, event.arrived_at)
        return SpeechResponse(triggered=True, outcome=outcome, intent=intent)

    @app.post("/vision/frame")
    async def vision_frame(frame: VisionFrame) -> TriggerResponse:
        """Evaluate one camera frame for a smile."""
        if not runtime.detector.process(frame):
            return TriggerResponse(triggered=False)
        outcome = await offer(TriggerSource.SMILE, None, arbiter.now())
        return TriggerResponse(triggered=True, outcome=outcome)

    @app.post("/media/ended")
    async def media_ended(payload: MediaEnded) -> MediaEndedResponse:
        """Report that the joy video finished playing."""
        scheduled = await arbiter.media_ended(payload.presentation_id)
        return MediaEndedResponse(scheduled=scheduled)

    @app.get("/render")
    async def get_render() -> RenderResponse:
        return RenderResponse(render=await runtime.feed.read())

    @app.get("/render/stream")
    async def stream_render() -> StreamingResponse:
        """
        Stream render instructions via Server-Sent Events.

        The current instruction is sent immediately upon connection, then
        every new one as the pet changes state.

        Returns:
            StreamingResponse with text/event-stream content type
        """

        async def event_generator() -> AsyncGenerator[str, None]:
            """Generate SSE events for render instructions."""
            try:
                async with runtime.feed.stream() as render_stream:
                    async for render in render_stream:
                        data = json.dumps(render.model_dump(mode="json"))
                        yield f"data: {data}\n\n"
            except asyncio.CancelledError:
                # Client disconnected
                pass
            except Exception as e:
                logger.exception("Render stream failed")
                error_data = json.dumps({"error": str(e)})
                yield f"event: error\ndata: {error_data}\n\n"

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Headers": "*",
            },
        )

    return app


settings = Settings()
app = create_app(build_runtime(load_config(settings.config_path)))


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "joypet_relay.server:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
