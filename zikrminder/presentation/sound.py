"""Sound resolution and per-platform playback backends."""

import asyncio
import base64
import binascii
import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import List

from zikrminder.db.models import Settings, SoundSpec
from zikrminder.errors import SoundPlaybackError
from zikrminder.utils.constants import SOUND_FILES

logger = logging.getLogger(__name__)


def resolve_sound(settings: Settings, sounds_dir: Path, custom_sounds_dir: Path) -> SoundSpec:
    """Map the sound selection to a playable file.

    A missing file is a configuration problem, not an error: it is logged
    and the prompt is shown without sound.
    """
    choice = settings.notification_sound
    spec = SoundSpec(sound=choice, volume=settings.volume)

    if choice == "none":
        return spec

    if choice == "custom":
        if not settings.custom_sound_path:
            logger.warning("Custom sound selected but no file configured")
            return spec
        # Only a bare file name is stored; never leave the custom-sounds dir
        path = custom_sounds_dir / Path(settings.custom_sound_path).name
    else:
        filename = SOUND_FILES.get(choice) or SOUND_FILES["default"]
        path = sounds_dir / filename  # type: ignore

    if not path.exists():
        logger.warning(f"Sound file not found: {path}")
        return spec

    spec.path = path
    return spec


def save_custom_sound(custom_sounds_dir: Path, filename: str, data: bytes | str) -> str:
    """Store an uploaded sound and return the name to put in settings.

    Accepts raw bytes or a base64 data URL.
    """
    if isinstance(data, str):
        if not data.startswith("data:") or "," not in data:
            raise ValueError("Expected a data URL")
        try:
            data = base64.b64decode(data.split(",", 1)[1], validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e

    name = Path(filename).name
    if not name:
        raise ValueError("Empty file name")

    custom_sounds_dir.mkdir(parents=True, exist_ok=True)
    (custom_sounds_dir / name).write_bytes(data)
    logger.info(f"Custom sound saved: {custom_sounds_dir / name}")
    return name


class SoundPlayer:
    """Playback capability. play() returns once the sound has finished."""

    name = "none"
    binary = ""

    async def play(self, path: Path, volume: float) -> None:
        raise NotImplementedError


class NullSoundPlayer(SoundPlayer):
    """Used when no audio backend is available."""

    async def play(self, path: Path, volume: float) -> None:
        raise SoundPlaybackError("No audio backend available")


class CommandSoundPlayer(SoundPlayer):
    """Plays a file by spawning an external player and waiting for it to exit."""

    def command(self, path: Path, volume: float) -> List[str]:
        raise NotImplementedError

    async def play(self, path: Path, volume: float) -> None:
        volume = min(max(volume, 0.0), 1.0)
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command(path, volume),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise SoundPlaybackError(f"Could not start {self.binary}: {e}") from e

        try:
            code = await process.wait()
        except asyncio.CancelledError:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            raise

        if code != 0:
            raise SoundPlaybackError(f"{self.binary} exited with status {code}")


class PaplaySoundPlayer(CommandSoundPlayer):
    """PulseAudio / PipeWire on Linux."""

    name = binary = "paplay"

    def command(self, path: Path, volume: float) -> List[str]:
        # paplay volume is linear, 65536 = 100%
        return [self.binary, f"--volume={int(volume * 65536)}", str(path)]


class AplaySoundPlayer(CommandSoundPlayer):
    """Plain ALSA fallback; has no volume control."""

    name = binary = "aplay"

    def command(self, path: Path, volume: float) -> List[str]:
        return [self.binary, "-q", str(path)]


class AfplaySoundPlayer(CommandSoundPlayer):
    """macOS."""

    name = binary = "afplay"

    def command(self, path: Path, volume: float) -> List[str]:
        return [self.binary, "-v", f"{volume:.2f}", str(path)]


WMPLAYER_SCRIPT = """\
Set args = WScript.Arguments
Set player = CreateObject("WMPlayer.OCX.7")
player.settings.volume = CInt(args(1))
player.URL = args(0)
player.controls.play()
waited = 0
WScript.Sleep 200
Do While player.playState <> 1 And player.playState <> 8 And waited < 60000
    WScript.Sleep 100
    waited = waited + 100
Loop
player.close()
"""


class WindowsSoundPlayer(CommandSoundPlayer):
    """Windows Media Player through a small VBScript run by cscript."""

    name = "wmplayer"
    binary = "cscript.exe"

    def __init__(self, script_dir: Path):
        self.script_path = script_dir / "play-sound.vbs"

    def command(self, path: Path, volume: float) -> List[str]:
        if not self.script_path.exists():
            self.script_path.parent.mkdir(parents=True, exist_ok=True)
            self.script_path.write_text(WMPLAYER_SCRIPT)
        # WMPlayer volume is 0-100
        return [self.binary, "//nologo", str(self.script_path), str(path), str(round(volume * 100))]


def select_sound_player(script_dir: Path, platform: str | None = None) -> SoundPlayer:
    """Pick the playback backend for this platform."""
    platform = platform or sys.platform

    if platform == "win32":
        candidates: List[SoundPlayer] = [WindowsSoundPlayer(script_dir)]
    elif platform == "darwin":
        candidates = [AfplaySoundPlayer()]
    else:
        candidates = [PaplaySoundPlayer(), AplaySoundPlayer()]

    for player in candidates:
        if shutil.which(player.binary):
            logger.info(f"Using {player.name} for sound playback")
            return player

    logger.warning("No audio player found, prompts will be silent")
    return NullSoundPlayer()
