"""Audible alert notification.

Primary playback runs a sound file through the first command-line player
found on ``PATH``. The fallback renders a short sine tone to a WAV file
and plays that instead. Both raise :class:`TripwatchPlaybackError` on
failure; the alert controller decides what to do about it.
"""

from __future__ import annotations

import asyncio
import io
import logging
import math
import os
import shutil
import struct
import tempfile
import wave
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from tripwatch._constants import (
    TONE_DURATION_SECONDS,
    TONE_FREQUENCY_HZ,
    TONE_GAIN,
    TONE_SAMPLE_RATE,
)
from tripwatch.exceptions import TripwatchPlaybackError

_logger = logging.getLogger(__name__)

#: Player invocations tried in order; the file path is appended.
DEFAULT_PLAYER_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("paplay",),
    ("aplay", "-q"),
    ("afplay",),
    ("ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"),
)


class SoundPlayer(Protocol):
    async def play(self, path: str) -> None:
        ...


class ToneSynthesizer(Protocol):
    async def tone(self, frequency: float, gain: float, duration: float) -> None:
        ...


def render_sine_wav(
    frequency: float = TONE_FREQUENCY_HZ,
    gain: float = TONE_GAIN,
    duration: float = TONE_DURATION_SECONDS,
    *,
    sample_rate: int = TONE_SAMPLE_RATE,
) -> bytes:
    """Render a mono 16-bit sine tone as WAV bytes."""
    if frequency <= 0 or duration <= 0:
        raise ValueError("frequency and duration must be positive")
    gain = max(0.0, min(1.0, gain))
    samples = max(1, int(sample_rate * duration))
    amplitude = 32767 * gain
    data = [int(amplitude * math.sin(2 * math.pi * frequency * i / sample_rate)) for i in range(samples)]
    # Short linear fade at both ends avoids clicks.
    fade = min(200, samples // 4)
    for i in range(fade):
        data[i] = int(data[i] * i / fade)
        data[-(i + 1)] = int(data[-(i + 1)] * i / fade)

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(struct.pack(f"<{samples}h", *data))
    return buffer.getvalue()


class _CommandRunner:
    def __init__(self, commands: Sequence[Sequence[str]] = DEFAULT_PLAYER_COMMANDS) -> None:
        self._commands = [tuple(cmd) for cmd in commands if cmd]

    def available_commands(self) -> list[tuple[str, ...]]:
        return [cmd for cmd in self._commands if shutil.which(cmd[0]) is not None]

    async def _run(self, args: Sequence[str]) -> int:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        return await proc.wait()

    async def play_file(self, path: str) -> None:
        candidates = self.available_commands()
        if not candidates:
            raise TripwatchPlaybackError("No audio player available")
        for cmd in candidates:
            try:
                returncode = await self._run([*cmd, path])
            except OSError:
                _logger.debug("Audio player %s could not start", cmd[0], exc_info=True)
                continue
            if returncode == 0:
                return
            _logger.debug("Audio player %s exited with %s", cmd[0], returncode)
        raise TripwatchPlaybackError(f"Could not play {path}")


class CommandSoundPlayer(_CommandRunner):
    """Play a sound file with an external player process."""

    async def play(self, path: str) -> None:
        if not Path(path).is_file():
            raise TripwatchPlaybackError(f"Sound file not found: {path}")
        await self.play_file(path)


class SineToneSynthesizer(_CommandRunner):
    """Synthesize a short sine tone and play it."""

    async def tone(
        self,
        frequency: float = TONE_FREQUENCY_HZ,
        gain: float = TONE_GAIN,
        duration: float = TONE_DURATION_SECONDS,
    ) -> None:
        try:
            payload = render_sine_wav(frequency, gain, duration)
        except ValueError as exc:
            raise TripwatchPlaybackError(str(exc)) from exc

        fd, path = tempfile.mkstemp(prefix="tripwatch-tone-", suffix=".wav")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            await self.play_file(path)
        finally:
            try:
                os.unlink(path)
            except OSError:
                pass
