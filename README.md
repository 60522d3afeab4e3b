# retroengine

The data-handling core of a retro 2D side-scrolling game engine. It covers
sprite animation files, the global part of a binary game configuration, and a
software mixer for sound effects and music. The package does not open windows,
files or audio devices. You give it bytes and callables, and it returns plain
Python objects and lists of samples.

## Install

```
pip install .
pip install ".[test]"   # adds pytest for the test suite
```

## Animations: `retroengine.animation`

`AnimationBank` keeps the loaded animation files (`AnimationFile`), their
animations (`SpriteAnimation`), sprite frames (`SpriteFrame`) and hitboxes
(`Hitbox`). Each hitbox holds eight directions.

```python
from pathlib import Path
from retroengine.animation import AnimationBank, AnimatedEntity

def read_file(path):
    p = Path(path)
    return p.read_bytes() if p.exists() else None

sheets = {}
def add_sheet(name):
    return sheets.setdefault(name, len(sheets))

bank = AnimationBank()
anim_file = bank.add_animation_file("Players/Sonic.ani", read_file, add_sheet)

entity = AnimatedEntity(animation=0)
bank.process_animation(anim_file, entity)
print(entity.frame, entity.animation_timer)
```

`add_animation_file` does the following:

- It passes `"Data/Animations/" + file_name` to `read_file`.
- If a file with the same name is already loaded, it returns that entry.
- If `read_file` returns `None`, it records an empty entry.

`load_animation(data, add_sheet)` parses raw animation bytes directly.
Animations whose rotation style is `RotationStyle.STATIC_FRAMES` have their
frame count halved, because the extra rotation frames are stored after the
regular ones.

`process_animation` advances an entity by one tick. The timer uses either the
animation's speed or the entity's own `animation_speed`, which is capped at
`0xF0`. When the animation changes, the frame and timer reset. The frame
advances each time the timer reaches `0xF0`. Past the last frame, playback
wraps to the animation's loop point.

`default_file()` returns the first loaded file, or an empty one if nothing is
loaded. `clear()` empties the bank.

The bank raises `AnimationError` in these cases:

- the data is truncated;
- the file table (256), animation table (1024), frame table (4096) or hitbox
  table (32) would overflow;
- `process_animation` is asked for an animation that does not exist.

## Game configuration: `retroengine.gameconfig`

`parse_game_config(data)` reads the following, in order, and returns a
`GameConfig`:

- the title, data name and description;
- the object names and script paths;
- the global variables, as name and 32-bit value pairs;
- the global sound-effect paths.

Truncated data raises `GameConfigError`.

`sfx_short_name(path)` returns the short name used for a sound effect. The name
is the text after the first slash and before the next dot, with spaces removed.
For example, `"Global/Jump Sound.wav"` becomes `"JumpSound"`.

## Mixing: `retroengine.mixer`

`mix_samples(dst, src, volume, pan)` adds samples into `dst` in place.

- Samples are interleaved left/right.
- `volume` is 0–100. A volume of 0 mixes nothing.
- `pan` runs from -100 (left) to 100 (right) and attenuates the opposite side.

`clamp_samples(mix)` returns the mix clamped to the signed 16-bit range.

`read_wav_samples(data)` decodes PCM WAV data of 8, 16, 24 or 32 bits into
interleaved 16-bit stereo samples. Mono input is duplicated to both sides.
Other sample rates are linearly resampled to 44100 Hz. Unreadable data raises
`WavError`.

## Audio playback state: `retroengine.audio`

`AudioEngine` manages the following:

- 256 sound-effect slots;
- 4 playback channels;
- 16 music tracks;
- the master, music and sound-effect volumes.

`render(sample_count)` mixes music and channels into interleaved 16-bit stereo
samples, working in blocks of 256.

```python
from retroengine.audio import AudioEngine

engine = AudioEngine()
engine.load_sfx("Jump.wav", wav_bytes, 0)
engine.play_sfx(0, loop=False)
samples = engine.render(512)
```

### Sound effects

- `load_global_sfx(config_data, read_file)` does the following:
  - parses the game configuration;
  - loads each listed effect from `"Data/SoundFX/" + path`, logging a warning
    for any effect whose WAV data cannot be read;
  - records each effect's short name in `global_sfx_names`;
  - returns the parsed `GameConfig`.
- `play_sfx(sfx, loop)` starts an effect. It reuses the channel the effect is
  already playing on; otherwise it takes the next channel in rotation.
- `set_sfx_attributes(sfx, loop_count, pan)` restarts an effect with a new pan
  on its own channel or on the first free one. A `loop_count` of -1 keeps the
  current loop setting.
- `stop_sfx`, `stop_all_sfx`, `release_global_sfx`, `release_stage_sfx` and
  `release` stop and free effects.

### Music

- `set_music_track(file_path, track_id, loop, loop_point)` stores
  `"Data/Music/" + file_path` for a track.
- `play_music(track, open_stream)` calls `open_stream` with that path.
  - The callable must return an object with `read(count)` and `seek(position)`
    (see `MusicStream`), or `None`.
  - `read(count)` yields decoded interleaved 16-bit stereo samples at 44100 Hz.
  - Looping tracks seek back to their loop point when the stream ends.
- `pause_sound()`, `resume_sound()`, `stop_music()` and `set_music_volume(volume)`
  control playback. Playback state is held in `MusicStatus`.

An engine created with `AudioEngine(enabled=False)` ignores sound-effect loads
and music requests, and renders silence.

## What this package does not do

- It does not play sound on an audio device. `render` only returns sample lists.
- It does not decode compressed music. Decoding is up to the `open_stream`
  callable.
- It does not load sprite sheet images. `add_sheet` only has to return a sheet ID.
- It has no drawing, input, scripting, scene handling, game loop or
  command-line program.