"""Built-in notification tones, synthesized into WAV files on first run."""

import logging
import math
import sys
import wave
from array import array
from pathlib import Path
from typing import Iterable, List, Tuple

from zikrminder.utils.constants import SOUND_FILES

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050
PEAK = 0.6 * 32767

# (frequency Hz, start s, duration s, decay per second)
Note = Tuple[float, float, float, float]

TONES: dict[str, List[Note]] = {
    "default": [(880.0, 0.0, 0.12, 6.0), (880.0, 0.18, 0.12, 6.0)],
    "bell": [(660.0, 0.0, 1.2, 3.0), (1320.0, 0.0, 0.8, 5.0), (1980.0, 0.0, 0.5, 8.0)],
    "chime": [(1046.5, 0.0, 0.45, 5.0), (1318.5, 0.22, 0.45, 5.0), (1568.0, 0.44, 0.7, 4.0)],
}


def render(notes: Iterable[Note]) -> array:
    """Mix decaying sine notes into 16-bit samples."""
    notes = list(notes)
    length = max(start + duration for _, start, duration, _ in notes)
    buffer = [0.0] * int(length * SAMPLE_RATE)

    for frequency, start, duration, decay in notes:
        offset = int(start * SAMPLE_RATE)
        for i in range(int(duration * SAMPLE_RATE)):
            t = i / SAMPLE_RATE
            buffer[offset + i] += math.sin(2 * math.pi * frequency * t) * math.exp(-decay * t)

    loudest = max((abs(s) for s in buffer), default=0.0) or 1.0
    return array("h", (int(s / loudest * PEAK) for s in buffer))


def write_wav(path: Path, samples: array) -> None:
    if sys.byteorder == "big":
        samples = array("h", samples)
        samples.byteswap()
    with wave.open(str(path), "w") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(samples.tobytes())


def ensure_builtin_sounds(sounds_dir: Path) -> List[Path]:
    """Write any missing built-in tone files. Returns the files created."""
    sounds_dir.mkdir(parents=True, exist_ok=True)
    created = []

    for name, notes in TONES.items():
        filename = SOUND_FILES[name]
        path = sounds_dir / filename  # type: ignore
        if path.exists():
            continue
        try:
            write_wav(path, render(notes))
            created.append(path)
        except OSError as e:
            logger.error(f"Could not write built-in tone {path}: {e}")

    if created:
        logger.info(f"Generated {len(created)} built-in tones in {sounds_dir}")
    return created
