"""
Command-line interface tools for the JoyPet Relay service.
"""

import asyncio
import json
from collections.abc import Coroutine
from datetime import datetime
from typing import Any

import httpx
import typer
from httpx_sse import ServerSentEvent, aconnect_sse

from .models import RenderEvent, Session

DEFAULT_BASE_URL = "http://localhost:8000"

app = typer.Typer(help="JoyPet Relay CLI tools")

BaseUrl = typer.Option(
    DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the JoyPet service"
)


# MARK: - CLI Entry Points


def cli_select() -> None:
    """Entry point for pet-select CLI command."""
    typer.run(select)


def cli_say() -> None:
    """Entry point for pet-say CLI command."""
    typer.run(say)


def cli_stream() -> None:
    """Entry point for pet-stream CLI command."""
    typer.run(stream)


# MARK: - Commands


@app.command()
def select(
    pet_id: str = typer.Argument(..., help="The pet to show"),
    base_url: str = BaseUrl,
) -> None:
    """Select the pet shown by the JoyPet service."""

    async def _select() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.put(
                f"{base_url}/session/pet", json={"pet_id": pet_id}
            )
            response.raise_for_status()
            session = Session.model_validate(response.json()["session"])
            print(f"Selected: {session.pet.id}")

    _run_with_error_handling(_select(), base_url)


@app.command()
def touch(base_url: str = BaseUrl) -> None:
    """Stroke the pet once."""

    async def _touch() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{base_url}/touch", json={"kind": "touchmove"}
            )
            response.raise_for_status()
            _print_outcome(response.json())

    _run_with_error_handling(_touch(), base_url)


@app.command()
def say(
    text: str = typer.Argument(..., help="What the pet hears"),
    interim: bool = typer.Option(False, "--interim", help="Send as interim result"),
    base_url: str = BaseUrl,
) -> None:
    """Send a recognized utterance to the pet."""

    async def _say() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{base_url}/speech", json={"text": text, "is_final": not interim}
            )
            response.raise_for_status()
            result = response.json()
            intent = result["intent"]
            if intent["pet_id"]:
                print(f"Intent: {intent['kind']} ({intent['pet_id']})")
            else:
                print(f"Intent: {intent['kind']}")
            _print_outcome(result)

    _run_with_error_handling(_say(), base_url)


@app.command()
def status(
    base_url: str = BaseUrl,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Get the current session from the JoyPet service."""

    async def _status() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/session")
            response.raise_for_status()
            result = response.json()

            if json_output:
                print(json.dumps(result, indent=2, ensure_ascii=False))
                return

            session = Session.model_validate(result["session"])
            print(f"{session.pet.id}: {session.state.value}")

    _run_with_error_handling(_status(), base_url)


@app.command()
def media_ended(
    presentation_id: int | None = typer.Option(
        None, "--id", help="Presentation that ended (current one by default)"
    ),
    base_url: str = BaseUrl,
) -> None:
    """Report that the joy video finished playing."""

    async def _media_ended() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{base_url}/media/ended", json={"presentation_id": presentation_id}
            )
            response.raise_for_status()
            if response.json()["scheduled"]:
                print("Returning to idle")
            else:
                print("Nothing to end")

    _run_with_error_handling(_media_ended(), base_url)


@app.command()
def stream(base_url: str = BaseUrl) -> None:
    """Stream render instructions in real-time."""

    async def _stream() -> None:
        print(f"Streaming from {base_url}/render/stream... (Ctrl+C to stop)")

        async with httpx.AsyncClient(timeout=None) as client:
            async with aconnect_sse(
                client, "GET", f"{base_url}/render/stream"
            ) as event_source:
                async for sse in event_source.aiter_sse():
                    _handle_sse_event(sse)

    _run_with_error_handling(_stream(), base_url)


# MARK: - Private Helpers


def _print_outcome(result: dict[str, Any]) -> None:
    if not result["triggered"]:
        print("No trigger")
        return
    outcome = result["outcome"]
    if outcome["accepted"]:
        print(f"{outcome['session']['pet']['id']} is joyful!")
    else:
        print(f"Ignored ({outcome['rejected_by']})")


def _format_render(render: RenderEvent) -> str:
    """Format a render instruction with its timestamp."""
    timestamp = datetime.fromtimestamp(render.timestamp).strftime("%H:%M:%S")
    media = render.video if render.video else render.image
    line = f"{timestamp} > {render.pet_id} {render.state.value} {media}"
    if render.message:
        line = f"{line} ({render.message})"
    if render.missing:
        line = f"{line} [missing: {', '.join(render.missing)}]"
    return line


def _handle_sse_event(sse: ServerSentEvent) -> None:
    """Handle a single SSE event."""
    try:
        if sse.event == "error":
            error_data = json.loads(sse.data)
            print(f"Server error: {error_data.get('error', 'Unknown error')}")
            return

        raw_data = json.loads(sse.data)
        render = RenderEvent.model_validate(raw_data)
        print(_format_render(render))

    except json.JSONDecodeError as e:
        print(f"Warning: Could not parse SSE data: {sse.data} - {e}")
    except Exception as e:
        print(f"Warning: Error processing render data: {e}")


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        detail = ""
        content_type = e.response.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            detail = f": {e.response.json().get('detail', '')}"
        print(f"Error: HTTP {e.response.status_code}{detail}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
