import io
import struct
import wave

import pytest

from retroengine.audio import (
    CHANNEL_COUNT,
    AudioEngine,
    MusicStatus,
)


def make_wav(samples, rate=44100, channels=2):
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(struct.pack(f"<{len(samples)}h", *samples))
    return buf.getvalue()


def pstr(text):
    raw = text.encode("latin-1")
    return bytes([len(raw)]) + raw


def make_config(sfx_paths):
    data = pstr("Game") + pstr("Data") + pstr("Desc")
    data += bytes([0])  # objects
    data += bytes([0])  # variables
    data += bytes([len(sfx_paths)])
    for path in sfx_paths:
        data += pstr(path)
    return data


class FakeStream:
    def __init__(self, samples):
        self.samples = list(samples)
        self.pos = 0
        self.seeks = []

    def read(self, count):
        chunk = self.samples[self.pos:self.pos + count]
        self.pos += len(chunk)
        return chunk

    def seek(self, position):
        self.seeks.append(position)
        self.pos = position * 2


def engine_with(samples, sfx_id=0):
    engine = AudioEngine()
    engine.load_sfx("Test.wav", make_wav(samples), sfx_id)
    return engine


def test_load_sfx_round_trip():
    samples = [10, -10, 300, -300, 7, 8]
    engine = engine_with(samples, 3)
    assert engine.sfx[3].samples == samples
    assert engine.sfx[3].loaded
    assert engine.sfx[3].name == "Test.wav"


def test_load_sfx_disabled_does_nothing():
    engine = AudioEngine(enabled=False)
    engine.load_sfx("Test.wav", make_wav([1, 2]), 0)
    assert not engine.sfx[0].loaded


def test_load_sfx_rejects_bad_id():
    engine = AudioEngine()
    with pytest.raises(IndexError):
        engine.load_sfx("x.wav", make_wav([1, 2]), 0x100)


def test_play_sfx_renders_samples_then_silence():
    samples = [100, 200, 300, 400]
    engine = engine_with(samples)
    engine.play_sfx(0, False)
    out = engine.render(8)
    assert out == samples + [0, 0, 0, 0]
    assert all(channel.sfx_id == -1 for channel in engine.channels)


def test_looping_sfx_repeats():
    samples = [5, 6, 7, 8]
    engine = engine_with(samples)
    engine.play_sfx(0, True)
    assert engine.render(10) == samples + samples + samples[:2]
    assert engine.channels[0].sfx_id == 0


def test_mixing_clamps_to_16_bit():
    engine = AudioEngine()
    engine.load_sfx("a.wav", make_wav([30000, -30000]), 0)
    engine.load_sfx("b.wav", make_wav([30000, -30000]), 1)
    engine.play_sfx(0, False)
    engine.play_sfx(1, False)
    assert engine.render(2) == [32767, -32768]


def test_play_same_sfx_reuses_channel_and_wraps_position():
    engine = engine_with([1, 2])
    engine.play_sfx(0, False)
    engine.play_sfx(0, False)
    assert [c.sfx_id for c in engine.channels].count(0) == 1
    for _ in range(CHANNEL_COUNT):
        engine.play_sfx(0, False)
    assert 0 <= engine.next_channel_pos < CHANNEL_COUNT


def test_stop_sfx_frees_channel():
    engine = engine_with([1, 2, 3, 4])
    engine.play_sfx(0, True)
    engine.stop_sfx(0)
    assert all(channel.sfx_id == -1 for channel in engine.channels)
    assert engine.render(4) == [0, 0, 0, 0]


def test_set_sfx_attributes_pans_right():
    engine = engine_with([1000] * 8)
    engine.set_sfx_attributes(0, 0, 100)
    assert engine.channels[0].sfx_id == 0
    out = engine.render(4)
    assert out[0::2] == [0, 0]
    assert out[1::2] == [1000, 1000]


def test_set_sfx_attributes_keeps_loop_for_minus_one():
    engine = engine_with([1, 2])
    engine.play_sfx(0, True)
    engine.set_sfx_attributes(0, -1, 0)
    assert engine.channels[0].loop is True
    engine.set_sfx_attributes(0, 0, 0)
    assert engine.channels[0].loop is False


def test_set_music_volume_clamps():
    engine = AudioEngine()
    engine.set_music_volume(-5)
    assert engine.master_volume == 0
    engine.set_music_volume(150)
    assert engine.master_volume == 100
    engine.set_music_volume(40)
    assert engine.master_volume == 40


def test_set_music_track_prefix_and_bounds():
    engine = AudioEngine()
    engine.set_music_track("Boss.ogg", 2, True, 1234)
    assert engine.tracks[2].file_name == "Data/Music/Boss.ogg"
    assert engine.tracks[2].track_loop is True
    assert engine.tracks[2].loop_point == 1234
    with pytest.raises(IndexError):
        engine.set_music_track("Boss.ogg", 16, False, 0)


def test_play_music_streams_samples():
    samples = [10, 20, 30, 40, 50, 60]
    engine = AudioEngine()
    engine.set_music_track("Song.ogg", 0, False, 0)
    opened = []

    def opener(path):
        opened.append(path)
        return FakeStream(samples)

    assert engine.play_music(0, opener) is True
    assert opened == ["Data/Music/Song.ogg"]
    assert engine.music_status == MusicStatus.PLAYING
    assert engine.track_id == 0
    assert engine.render(6) == samples


def test_music_ends_without_loop():
    engine = AudioEngine()
    engine.set_music_track("Song.ogg", 0, False, 0)
    engine.play_music(0, lambda path: FakeStream([1, 2, 3, 4]))
    assert engine.render(8) == [1, 2, 3, 4, 0, 0, 0, 0]
    assert engine.music_status == MusicStatus.STOPPED


def test_music_loops_to_loop_point():
    stream = FakeStream([1, 2, 3, 4])
    engine = AudioEngine()
    engine.set_music_track("Song.ogg", 0, True, 1)
    engine.play_music(0, lambda path: stream)
    assert engine.render(8) == [1, 2, 3, 4, 3, 4, 3, 4]
    assert stream.seeks and all(pos == 1 for pos in stream.seeks)
    assert engine.music_status == MusicStatus.PLAYING


def test_play_music_empty_track_stops():
    engine = AudioEngine()
    assert engine.play_music(5, lambda path: FakeStream([1])) is False
    assert engine.music_status == MusicStatus.STOPPED


def test_play_music_failed_open_stops():
    engine = AudioEngine()
    engine.set_music_track("Missing.ogg", 0, False, 0)
    engine.play_music(0, lambda path: None)
    assert engine.music_status == MusicStatus.STOPPED
    assert engine.render(4) == [0, 0, 0, 0]


def test_play_music_disabled_returns_false():
    engine = AudioEngine(enabled=False)
    engine.set_music_track("Song.ogg", 0, False, 0)
    assert engine.play_music(0, lambda path: FakeStream([1, 2])) is False


def test_pause_and_resume():
    engine = AudioEngine()
    assert engine.pause_sound() is False
    engine.set_music_track("Song.ogg", 0, False, 0)
    engine.play_music(0, lambda path: FakeStream([9, 9, 9, 9]))
    assert engine.pause_sound() is True
    assert engine.music_status == MusicStatus.PAUSED
    assert engine.render(4) == [0, 0, 0, 0]
    engine.resume_sound()
    assert engine.music_status == MusicStatus.PLAYING
    assert engine.render(4) == [9, 9, 9, 9]


def test_stop_music():
    engine = AudioEngine()
    engine.set_music_track("Song.ogg", 0, False, 0)
    engine.play_music(0, lambda path: FakeStream([9, 9]))
    engine.stop_music()
    assert engine.music_status == MusicStatus.STOPPED
    assert engine.render(2) == [0, 0]


def test_load_global_sfx_reads_config():
    files = {
        "Data/SoundFX/Global/Jump.wav": make_wav([1, 2, 3, 4]),
        "Data/SoundFX/Global/Ring.wav": make_wav([5, 6]),
    }
    config_data = make_config(["Global/Jump.wav", "Global/Ring.wav", "Global/Missing.wav"])
    engine = AudioEngine()
    config = engine.load_global_sfx(config_data, files.get)
    assert config.sfx_paths == ["Global/Jump.wav", "Global/Ring.wav", "Global/Missing.wav"]
    assert engine.global_sfx_count == 3
    assert engine.sfx[0].samples == [1, 2, 3, 4]
    assert engine.sfx[1].samples == [5, 6]
    assert not engine.sfx[2].loaded
    assert engine.global_sfx_names[:3] == ["Jump", "Ring", "Missing"]


def test_release_global_sfx_clears_slots():
    files = {"Data/SoundFX/Global/Jump.wav": make_wav([1, 2])}
    engine = AudioEngine()
    engine.load_global_sfx(make_config(["Global/Jump.wav"]), files.get)
    engine.play_sfx(0, True)
    engine.release_global_sfx()
    assert engine.global_sfx_count == 0
    assert not engine.sfx[0].loaded
    assert engine.render(2) == [0, 0]


def test_release_stage_sfx_clears_stage_slots():
    engine = AudioEngine()
    engine.global_sfx_count = 1
    engine.load_sfx("g.wav", make_wav([1, 2]), 0)
    engine.load_sfx("s.wav", make_wav([3, 4]), 1)
    engine.stage_sfx_count = 1
    engine.release_stage_sfx()
    assert engine.sfx[0].loaded
    assert not engine.sfx[1].loaded
    assert engine.stage_sfx_count == 0


def test_release_resets_everything():
    engine = engine_with([1, 2])
    engine.global_sfx_count = 1
    engine.set_music_track("Song.ogg", 0, False, 0)
    engine.play_music(0, lambda path: FakeStream([1, 2]))
    engine.play_sfx(0, True)
    engine.release()
    assert engine.music_status == MusicStatus.STOPPED
    assert not engine.sfx[0].loaded
    assert engine.render(2) == [0, 0]


@pytest.mark.parametrize("count", [0, 1, 255, 256, 600])
def test_render_length(count):
    engine = engine_with([7] * 1000)
    engine.play_sfx(0, False)
    out = engine.render(count)
    assert len(out) == count
    assert all(sample == 7 for sample in out)


def test_render_disabled_is_silent_and_negative_rejected():
    engine = AudioEngine(enabled=False)
    assert engine.render(3) == [0, 0, 0]
    with pytest.raises(ValueError):
        engine.render(-1)