"""Tests for the system notification presenter and console surface."""

import asyncio
import io
from pathlib import Path

from conftest import FakeSoundPlayer, HangingSoundPlayer, make_item
from rich.console import Console

from zikrminder.db.models import Prompt, SoundSpec
from zikrminder.presentation.surface import ConsoleSurface
from zikrminder.presentation.system import SystemPresenter
from zikrminder.utils.constants import APP_TITLE


def test_notification_without_loop():
    """Test the notification is shown inline when no loop is running."""
    calls = []
    presenter = SystemPresenter(FakeSoundPlayer(), notify=lambda **kw: calls.append(kw))

    presenter.present(make_item(1, text="Subhan Allah"), SoundSpec(sound="none"))

    assert calls[0]["title"] == APP_TITLE
    assert calls[0]["message"] == "Subhan Allah"


def test_notification_and_sound_in_loop():
    """Test notification and sound both happen without blocking the caller."""
    calls = []
    player = FakeSoundPlayer()
    sound = SoundSpec(sound="chime", path=Path("/sounds/chime.wav"), volume=0.4)

    async def scenario():
        presenter = SystemPresenter(player, notify=lambda **kw: calls.append(kw))
        presenter.present(make_item(1), sound)
        await asyncio.sleep(0.05)
        presenter.close()

    asyncio.run(scenario())

    assert len(calls) == 1
    assert player.played == [(sound.path, 0.4)]


def test_endless_sound_is_stopped():
    """Test notification sounds are cut off after the maximum duration."""
    player = HangingSoundPlayer()
    sound = SoundSpec(sound="chime", path=Path("/sounds/chime.wav"), volume=0.4)

    async def scenario():
        presenter = SystemPresenter(player, notify=lambda **kw: None, max_sound_duration=0.05)
        presenter.present(make_item(1), sound)
        await asyncio.sleep(0.2)
        return len(presenter._tasks)

    running = asyncio.run(scenario())

    assert player.stopped == 1
    assert running == 0


def test_notification_failure_is_contained():
    """Test a broken notification backend doesn't raise into the driver."""

    def broken(**kwargs):
        raise NotImplementedError("no backend")

    presenter = SystemPresenter(FakeSoundPlayer(), notify=broken)

    presenter.present(make_item(1), SoundSpec(sound="none"))


def test_console_surface_renders_prompt():
    """Test the console surface prints the prompt under the app title."""
    output = io.StringIO()
    surface = ConsoleSurface(Console(file=output, width=60, color_system=None))
    surface.apply_theme("dark")

    surface.show(Prompt(item_id=1, text="Alhamdulillah", theme=""))

    rendered = output.getvalue()
    assert "Alhamdulillah" in rendered
    assert APP_TITLE in rendered
    assert surface.visible.item_id == 1

    surface.hide()
    assert surface.visible is None
