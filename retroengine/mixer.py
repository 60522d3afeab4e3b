"""Sample mixing for the audio callback, and decoding WAV data into device samples."""

from __future__ import annotations

import io
import struct
import wave
from collections.abc import MutableSequence, Sequence

MAX_VOLUME = 100

SAMPLE_MAX = (1 << 15) - 1
SAMPLE_MIN = -(1 << 15)

DEVICE_FREQUENCY = 44100
DEVICE_CHANNELS = 2


class WavError(ValueError):
    """Raised when sound effect data is not a readable PCM WAV file."""


def _scale(sample: int, volume: int) -> int:
    """Integer scaling by volume / MAX_VOLUME, truncating toward zero."""
    product = sample * volume
    quotient = abs(product) // MAX_VOLUME
    return quotient if product >= 0 else -quotient


def mix_samples(dst: MutableSequence[int], src: Sequence[int], volume: int, pan: int) -> None:
    """Add ``src`` into ``dst`` in place at the given volume and stereo pan.

    Samples are interleaved left/right. ``pan`` runs from -100 (left) to 100
    (right) and attenuates the opposite side; a volume of 0 mixes nothing.
    """
    if len(src) > len(dst):
        raise ValueError("source has more samples than the mix buffer")
    if volume == 0:
        return
    volume = min(volume, MAX_VOLUME)

    pan_left = pan_right = 1.0
    if pan < 0:
        pan_right = 1.0 - abs(pan / 100.0)
    elif pan > 0:
        pan_left = 1.0 - abs(pan / 100.0)

    for index, sample in enumerate(src):
        value = _scale(sample, volume)
        if pan != 0:
            value = int(value * (pan_right if index % 2 else pan_left))
        dst[index] += value


def clamp_samples(mix: Sequence[int]) -> list[int]:
    """Clamp mixed samples back into the signed 16-bit range."""
    return [max(SAMPLE_MIN, min(SAMPLE_MAX, sample)) for sample in mix]


def _to_s16(raw: bytes, width: int) -> list[int]:
    if width == 1:
        return [(byte - 0x80) << 8 for byte in raw]
    if width == 2:
        return [value for (value,) in struct.iter_unpack("<h", raw)]
    if width in (3, 4):
        shift = (width - 2) * 8
        return [
            int.from_bytes(raw[pos:pos + width], "little", signed=True) >> shift
            for pos in range(0, len(raw) - width + 1, width)
        ]
    raise WavError(f"unsupported sample width: {width} bytes")


def _to_stereo(samples: list[int], channels: int) -> list[tuple[int, int]]:
    frames = zip(*[iter(samples)] * channels)
    if channels == 1:
        return [(frame[0], frame[0]) for frame in frames]
    return [(frame[0], frame[1]) for frame in frames]


def _resample(frames: list[tuple[int, int]], rate: int) -> list[tuple[int, int]]:
    if rate == DEVICE_FREQUENCY or not frames:
        return frames
    last = len(frames) - 1
    out_count = len(frames) * DEVICE_FREQUENCY // rate
    result = []
    for out_pos in range(out_count):
        position = out_pos * rate
        base, frac = divmod(position, DEVICE_FREQUENCY)
        base = min(base, last)
        nxt = min(base + 1, last)
        a, b = frames[base], frames[nxt]
        result.append(
            (
                a[0] + (b[0] - a[0]) * frac // DEVICE_FREQUENCY,
                a[1] + (b[1] - a[1]) * frac // DEVICE_FREQUENCY,
            )
        )
    return result


def read_wav_samples(data: bytes) -> list[int]:
    """Decode PCM WAV bytes into interleaved signed 16-bit stereo samples at 44100 Hz."""
    try:
        with wave.open(io.BytesIO(bytes(data)), "rb") as wav:
            channels = wav.getnchannels()
            width = wav.getsampwidth()
            rate = wav.getframerate()
            raw = wav.readframes(wav.getnframes())
    except (wave.Error, EOFError, struct.error) as exc:
        raise WavError(f"cannot read wav data: {exc}") from exc
    if channels < 1:
        raise WavError("wav data has no channels")
    if rate <= 0:
        raise WavError("wav data has an invalid sample rate")

    frames = _resample(_to_stereo(_to_s16(raw, width), channels), rate)
    return [sample for frame in frames for sample in frame]