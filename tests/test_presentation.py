"""
Tests for the RenderFeed presentation sink.

These tests verify that render instructions are recorded, read back and
streamed to multiple subscribers, and that missing assets are reported.
"""

import asyncio

import pytest

from joypet_relay.config import MessageConfig
from joypet_relay.errors import AssetUnavailableError
from joypet_relay.models import DisplayState, Pet
from joypet_relay.presentation import IdleReason, RenderFeed

USAKO = Pet(
    id="usako",
    idle_image="assets/usako/n1.png",
    joy_video="assets/usako/p2.mp4",
    sound="assets/sounds/rabbit.mp3",
)


class TestRenderFeed:
    """Test suite for RenderFeed functionality."""

    def setup_method(self):
        self.feed = RenderFeed()

    async def test_initial_state(self):
        """Nothing is rendered before the first instruction."""
        assert await self.feed.read() is None

    async def test_render_idle(self):
        await self.feed.render_idle(USAKO, IdleReason.STARTUP)

        render = await self.feed.read()
        assert render.state is DisplayState.IDLE
        assert render.pet_id == "usako"
        assert render.image == "assets/usako/n1.png"
        assert render.video is None
        assert render.message == "こんにちは！"
        assert render.missing == []

    async def test_render_joyful(self):
        await self.feed.render_joyful(USAKO, presentation_id=3)

        render = await self.feed.read()
        assert render.state is DisplayState.JOYFUL
        assert render.video == "assets/usako/p2.mp4"
        assert render.sound == "assets/sounds/rabbit.mp3"
        assert render.presentation_id == 3
        assert render.message == "喜んでいるよ！"

    async def test_messages_per_reason(self):
        feed = RenderFeed(messages=MessageConfig(select="だれかな？"))

        await feed.render_idle(USAKO, IdleReason.SELECT)
        assert (await feed.read()).message == "だれかな？"

        await feed.render_idle(USAKO, IdleReason.RETURNED)
        assert (await feed.read()).message == "また遊んでね！"

    async def test_missing_assets(self, tmp_path):
        """Missing assets are published as degraded, then reported."""
        (tmp_path / "assets/usako").mkdir(parents=True)
        (tmp_path / "assets/usako/p2.mp4").write_bytes(b"")
        feed = RenderFeed(asset_root=tmp_path)

        with pytest.raises(AssetUnavailableError) as excinfo:
            await feed.render_joyful(USAKO, presentation_id=1)
        assert excinfo.value.kinds == ["sound"]

        render = await feed.read()
        assert render.state is DisplayState.JOYFUL
        assert render.missing == ["sound"]

        with pytest.raises(AssetUnavailableError):
            await feed.render_idle(USAKO, IdleReason.STARTUP)

    async def test_present_assets(self, tmp_path):
        for path in (USAKO.idle_image, USAKO.joy_video, USAKO.sound):
            (tmp_path / path).parent.mkdir(parents=True, exist_ok=True)
            (tmp_path / path).write_bytes(b"")
        feed = RenderFeed(asset_root=tmp_path)

        await feed.render_idle(USAKO, IdleReason.STARTUP)
        await feed.render_joyful(USAKO, presentation_id=1)
        assert (await feed.read()).missing == []

    async def test_streaming(self):
        """Test that two consumers receive streamed render instructions."""
        await self.feed.render_idle(USAKO, IdleReason.STARTUP)
        consumer1_states = []
        consumer2_states = []

        async def consume(states):
            async with self.feed.stream() as render_stream:
                async for render in render_stream:
                    states.append(render.state)
                    if len(states) >= 3:  # startup + 2 updates
                        break

        task1 = asyncio.create_task(consume(consumer1_states))
        task2 = asyncio.create_task(consume(consumer2_states))

        # Let them set up
        await asyncio.sleep(0.01)

        await self.feed.render_joyful(USAKO, presentation_id=1)
        await asyncio.sleep(0.01)
        await self.feed.render_idle(USAKO, IdleReason.RETURNED)

        try:
            await asyncio.wait_for(asyncio.gather(task1, task2), timeout=2.0)
        except TimeoutError:
            task1.cancel()
            task2.cancel()
            await asyncio.gather(task1, task2, return_exceptions=True)
            assert False, (
                f"Test timed out. Consumer1 got: {consumer1_states}, "
                f"Consumer2 got: {consumer2_states}"
            )

        expected = [DisplayState.IDLE, DisplayState.JOYFUL, DisplayState.IDLE]
        assert consumer1_states == expected
        assert consumer2_states == expected

    async def test_stream_before_first_render(self):
        """A subscriber that joins early waits for the first instruction."""
        received = []

        async def consume():
            async with self.feed.stream() as render_stream:
                async for render in render_stream:
                    received.append(render.pet_id)
                    break

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        assert received == []

        await self.feed.render_idle(USAKO, IdleReason.STARTUP)
        await asyncio.wait_for(task, timeout=2.0)
        assert received == ["usako"]
