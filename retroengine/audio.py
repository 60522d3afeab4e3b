"""Music and sound effect playback state, and mixing it into device samples."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional, Protocol

from .gameconfig import GameConfig, parse_game_config, sfx_short_name
from .mixer import MAX_VOLUME, WavError, clamp_samples, mix_samples, read_wav_samples

TRACK_COUNT = 0x10
SFX_COUNT = 0x100
CHANNEL_COUNT = 4
MIX_BUFFER_SAMPLES = 256

MUSIC_PATH = "Data/Music/"
SFX_PATH = "Data/SoundFX/"

log = logging.getLogger(__name__)


class MusicStream(Protocol):
    """A decoded music source yielding interleaved 16-bit stereo samples at 44100 Hz."""

    def read(self, count: int) -> Sequence[int]:
        """Return up to ``count`` samples; an empty result means the end was reached."""

    def seek(self, position: int) -> None:
        """Move to a position given in sample frames."""


StreamOpener = Callable[[str], Optional[MusicStream]]
FileReader = Callable[[str], Optional[bytes]]


class MusicStatus(IntEnum):
    STOPPED = 0
    PLAYING = 1
    PAUSED = 2
    LOADING = 3
    READY = 4


@dataclass
class TrackInfo:
    file_name: str = ""
    track_loop: bool = False
    loop_point: int = 0


@dataclass
class SoundEffect:
    name: str = ""
    samples: list[int] = field(default_factory=list)
    loaded: bool = False


@dataclass
class Channel:
    sfx_id: int = -1
    samples: Sequence[int] = ()
    position: int = 0
    loop: bool = False
    pan: int = 0

    @property
    def remaining(self) -> int:
        return len(self.samples) - self.position

    def reset(self) -> None:
        self.sfx_id = -1
        self.samples = ()
        self.position = 0
        self.loop = False
        self.pan = 0


class AudioEngine:
    """Holds the music tracks, sound effects and channels and renders them into samples."""

    def __init__(self, enabled: bool = True) -> None:
        self.audio_enabled = enabled
        self.master_volume = MAX_VOLUME
        self.sfx_volume = MAX_VOLUME
        self.bgm_volume = MAX_VOLUME
        self.track_id = -1
        self.music_status = MusicStatus.STOPPED
        self.tracks = [TrackInfo() for _ in range(TRACK_COUNT)]
        self.sfx = [SoundEffect() for _ in range(SFX_COUNT)]
        self.global_sfx_names = [""] * SFX_COUNT
        self.stage_sfx_names = [""] * SFX_COUNT
        self.channels = [Channel() for _ in range(CHANNEL_COUNT)]
        self.next_channel_pos = 0
        self.global_sfx_count = 0
        self.stage_sfx_count = 0
        self._music: Optional[MusicStream] = None
        self._music_buffer: list[int] = []
        self._music_loop = False
        self._music_loop_point = 0

    @staticmethod
    def _check_sfx(sfx: int) -> None:
        if not 0 <= sfx < SFX_COUNT:
            raise IndexError(f"sound effect id out of range: {sfx}")

    # Sound effects

    def load_sfx(self, name: str, data: bytes, sfx_id: int) -> None:
        """Decode WAV data into the sound effect slot ``sfx_id``."""
        self._check_sfx(sfx_id)
        if not self.audio_enabled:
            return
        samples = read_wav_samples(data)
        self.sfx[sfx_id] = SoundEffect(name=name, samples=samples, loaded=True)

    def load_global_sfx(self, config_data: bytes, read_file: FileReader) -> GameConfig:
        """Load every global sound effect listed in game config data.

        ``read_file`` receives the full data path and returns the file's bytes or None.
        """
        config = parse_game_config(config_data)
        self.global_sfx_count = len(config.sfx_paths)
        for sfx_id, path in enumerate(config.sfx_paths):
            data = read_file(SFX_PATH + path)
            if data is not None:
                try:
                    self.load_sfx(path, data, sfx_id)
                except WavError as exc:
                    log.warning("Unable to read sfx %s: %s", path, exc)
            self.global_sfx_names[sfx_id] = sfx_short_name(path)
            log.debug("Set Global SFX (%d) name to: %s", sfx_id, self.global_sfx_names[sfx_id])
        self.next_channel_pos = 0
        self.stop_all_sfx()
        return config

    def play_sfx(self, sfx: int, loop: bool) -> None:
        """Start a sound effect, reusing the channel it already plays on if any."""
        self._check_sfx(sfx)
        channel_id = self.next_channel_pos
        self.next_channel_pos += 1
        for index, channel in enumerate(self.channels):
            if channel.sfx_id == sfx:
                channel_id = index
                break

        channel = self.channels[channel_id]
        channel.sfx_id = sfx
        channel.samples = self.sfx[sfx].samples
        channel.position = 0
        channel.loop = bool(loop)
        channel.pan = 0
        if self.next_channel_pos == CHANNEL_COUNT:
            self.next_channel_pos = 0

    def stop_sfx(self, sfx: int) -> None:
        for channel in self.channels:
            if channel.sfx_id == sfx:
                channel.reset()

    def set_sfx_attributes(self, sfx: int, loop_count: int, pan: int) -> None:
        """Restart ``sfx`` with a new pan on its channel or the first free one.

        A ``loop_count`` of -1 keeps the channel's loop setting.
        """
        self._check_sfx(sfx)
        for channel in self.channels:
            if channel.sfx_id in (sfx, -1):
                break
        else:
            return
        channel.samples = self.sfx[sfx].samples
        channel.position = 0
        if loop_count != -1:
            channel.loop = bool(loop_count)
        channel.pan = pan
        channel.sfx_id = sfx

    def stop_all_sfx(self) -> None:
        for channel in self.channels:
            channel.reset()

    def release_global_sfx(self) -> None:
        self.stop_all_sfx()
        for sfx_id in range(self.global_sfx_count):
            if self.sfx[sfx_id].loaded:
                self.sfx[sfx_id] = SoundEffect()
        self.global_sfx_count = 0

    def release_stage_sfx(self) -> None:
        last = min(self.global_sfx_count + self.stage_sfx_count, SFX_COUNT - 1)
        for sfx_id in range(self.global_sfx_count, last + 1):
            if self.sfx[sfx_id].loaded:
                self.sfx[sfx_id] = SoundEffect()
        self.stage_sfx_count = 0

    # Music

    def set_music_track(self, file_path: str, track_id: int, loop: bool, loop_point: int) -> None:
        if not 0 <= track_id < TRACK_COUNT:
            raise IndexError(f"music track id out of range: {track_id}")
        self.tracks[track_id] = TrackInfo(
            file_name=MUSIC_PATH + file_path, track_loop=bool(loop), loop_point=loop_point
        )

    def play_music(self, track: int, open_stream: StreamOpener) -> bool:
        """Start a music track; ``open_stream`` opens the track's file path.

        Returns True when loading was attempted.
        """
        if not self.audio_enabled:
            return False
        if not 0 <= track < TRACK_COUNT:
            raise IndexError(f"music track id out of range: {track}")

        info = self.tracks[track]
        if not info.file_name:
            self.stop_music()
            return False
        if self.music_status == MusicStatus.LOADING:
            log.warning("music tried to play while music was loading")
            return False

        self.music_status = MusicStatus.LOADING
        self._music = None
        self._music_buffer.clear()
        try:
            stream = open_stream(info.file_name)
        except (OSError, ValueError) as exc:
            log.warning("Failed to load music %s: %s", info.file_name, exc)
            stream = None

        if stream is None:
            self.music_status = MusicStatus.STOPPED
            return True

        self._music = stream
        self._music_loop = info.track_loop
        self._music_loop_point = info.loop_point
        self.music_status = MusicStatus.PLAYING
        self.master_volume = MAX_VOLUME
        self.track_id = track
        return True

    def stop_music(self) -> None:
        self.music_status = MusicStatus.STOPPED
        self._music = None
        self._music_buffer.clear()

    def set_music_volume(self, volume: int) -> None:
        self.master_volume = max(0, min(MAX_VOLUME, volume))

    def pause_sound(self) -> bool:
        if self.music_status == MusicStatus.PLAYING:
            self.music_status = MusicStatus.PAUSED
            return True
        return False

    def resume_sound(self) -> None:
        if self.music_status == MusicStatus.PAUSED:
            self.music_status = MusicStatus.PLAYING

    def release(self) -> None:
        self.stop_music()
        self.stop_all_sfx()
        self.release_stage_sfx()
        self.release_global_sfx()

    # Rendering

    def render(self, sample_count: int) -> list[int]:
        """Mix the next ``sample_count`` interleaved stereo samples."""
        if sample_count < 0:
            raise ValueError("sample count cannot be negative")
        if not self.audio_enabled:
            return [0] * sample_count

        output: list[int] = []
        remaining = sample_count
        while remaining > 0:
            count = min(remaining, MIX_BUFFER_SAMPLES)
            mix = [0] * count
            self._mix_music(mix)
            self._mix_channels(mix)
            output.extend(clamp_samples(mix))
            remaining -= count
        return output

    def _mix_music(self, mix: list[int]) -> None:
        if self._music is None:
            return
        if self.music_status not in (MusicStatus.PLAYING, MusicStatus.READY):
            return

        wanted = len(mix)
        just_sought = False
        while self.music_status == MusicStatus.PLAYING and len(self._music_buffer) < wanted:
            chunk = self._music.read(MIX_BUFFER_SAMPLES)
            if not chunk:
                if self._music_loop and not just_sought:
                    self._music.seek(self._music_loop_point)
                    just_sought = True
                    continue
                self.music_status = MusicStatus.STOPPED
                break
            just_sought = False
            self._music_buffer.extend(chunk)

        samples = self._music_buffer[:wanted]
        del self._music_buffer[:wanted]
        if samples:
            mix_samples(mix, samples, (self.bgm_volume * self.master_volume) // MAX_VOLUME, 0)

    def _mix_channels(self, mix: list[int]) -> None:
        wanted = len(mix)
        for channel in self.channels:
            if channel.sfx_id < 0 or not channel.samples:
                continue
            buffer: list[int] = []
            while len(buffer) < wanted:
                take = min(channel.remaining, wanted - len(buffer))
                buffer.extend(channel.samples[channel.position:channel.position + take])
                channel.position += take
                if channel.remaining == 0:
                    if channel.loop and self.sfx[channel.sfx_id].samples:
                        channel.samples = self.sfx[channel.sfx_id].samples
                        channel.position = 0
                    else:
                        channel.reset()
                        break
            mix_samples(mix, buffer, self.sfx_volume, channel.pan)