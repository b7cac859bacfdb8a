"""Tests for the floating display presenter."""

import asyncio
from pathlib import Path

from conftest import FakeSoundPlayer, FakeSurface, HangingSoundPlayer, make_item

from zikrminder.db.models import Settings, SoundSpec
from zikrminder.presentation.floating import FloatingPresenter, is_arabic

SILENT = SoundSpec(sound="none")
BELL = SoundSpec(sound="bell", path=Path("/sounds/notification-bell.wav"), volume=0.5)


def build(surface=None, player=None, **kwargs):
    kwargs.setdefault("dismiss_delay", 0.01)
    kwargs.setdefault("fallback_timeout", 0.01)
    return FloatingPresenter(surface or FakeSurface(), player or FakeSoundPlayer(), **kwargs)


def test_prompts_shown_in_arrival_order():
    """Test prompts arriving while one is visible are shown FIFO."""
    surface = FakeSurface()

    async def scenario():
        presenter = build(surface)
        for item_id in (1, 2, 3):
            presenter.present(make_item(item_id), SILENT)
        queued = len(presenter.pending)
        await asyncio.sleep(0.2)
        return presenter, queued

    presenter, queued = asyncio.run(scenario())

    assert queued == 2
    assert [prompt.item_id for prompt in surface.shown] == [1, 2, 3]
    assert surface.hidden == 3
    assert not presenter.busy


def test_closes_after_sound_finishes():
    """Test the prompt closes shortly after its sound plays."""
    surface = FakeSurface()
    player = FakeSoundPlayer()

    async def scenario():
        presenter = build(surface, player)
        presenter.present(make_item(1), BELL)
        await asyncio.sleep(0.1)
        return presenter

    presenter = asyncio.run(scenario())

    assert player.played == [(BELL.path, 0.5)]
    assert surface.hidden == 1
    assert not presenter.busy


def test_failed_sound_uses_fallback_timeout():
    """Test a playback failure keeps the prompt up for the fallback timeout."""
    player = FakeSoundPlayer(fail=True)

    async def scenario():
        presenter = build(player=player, fallback_timeout=0.3)
        presenter.present(make_item(1), BELL)
        await asyncio.sleep(0.1)
        busy_early = presenter.busy
        await asyncio.sleep(0.4)
        return busy_early, presenter.busy

    assert asyncio.run(scenario()) == (True, False)


def test_endless_sound_is_cut_off():
    """Test a sound that never ends can't keep the display slot forever."""
    surface = FakeSurface()
    player = HangingSoundPlayer()

    async def scenario():
        presenter = build(surface, player, max_sound_duration=0.05, fallback_timeout=0.05)
        presenter.present(make_item(1), BELL)
        presenter.present(make_item(2), BELL)
        await asyncio.sleep(0.5)
        return presenter

    presenter = asyncio.run(scenario())

    assert [prompt.item_id for prompt in surface.shown] == [1, 2]
    assert player.stopped == 2
    assert not presenter.busy


def test_hold_suspends_auto_close():
    """Test hovering keeps the prompt open until the pointer leaves."""

    async def scenario():
        presenter = build()
        presenter.present(make_item(1), BELL)
        presenter.hold()
        await asyncio.sleep(0.1)
        held = presenter.busy
        presenter.release()
        await asyncio.sleep(0.1)
        return held, presenter.busy

    assert asyncio.run(scenario()) == (True, False)


def test_dismiss_shows_next():
    """Test clicking a prompt closes it and shows the next pending one."""
    surface = FakeSurface()

    async def scenario():
        presenter = build(surface, fallback_timeout=10)
        presenter.present(make_item(1), SILENT)
        presenter.present(make_item(2), SILENT)
        presenter.dismiss()
        current = presenter.current
        presenter.close()
        return current

    current = asyncio.run(scenario())

    assert current.item_id == 2
    assert [prompt.item_id for prompt in surface.shown] == [1, 2]


def test_surface_failure_releases_slot():
    """Test a prompt that cannot be shown doesn't block the display."""
    surface = FakeSurface(fail_show=True)

    async def scenario():
        presenter = build(surface)
        presenter.present(make_item(1), SILENT)
        return presenter

    presenter = asyncio.run(scenario())

    assert not presenter.busy
    assert surface.hidden == 1


def test_queue_bounded():
    """Test prompts beyond the pending limit are dropped."""

    async def scenario():
        presenter = build(fallback_timeout=10, max_pending=2)
        for item_id in range(1, 6):
            presenter.present(make_item(item_id), SILENT)
        pending = [item.id for item, _ in presenter.pending]
        presenter.close()
        return pending, presenter

    pending, presenter = asyncio.run(scenario())

    assert pending == [2, 3]
    assert not presenter.busy
    assert not presenter.pending


def test_theme_and_direction():
    """Test prompts carry the configured theme and RTL for Arabic text."""
    surface = FakeSurface()

    async def scenario():
        presenter = build(surface, fallback_timeout=10)
        presenter.configure(Settings(theme="dark"))
        presenter.present(make_item(1, text="سبحان الله"), SILENT)
        presenter.close()

    asyncio.run(scenario())

    assert surface.theme == "dark"
    assert surface.shown[0].theme == "dark"
    assert surface.shown[0].rtl


def test_is_arabic():
    """Test Arabic detection."""
    assert is_arabic("الحمد لله")
    assert is_arabic("Say: الله أكبر")
    assert not is_arabic("Alhamdulillah")
