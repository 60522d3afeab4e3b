"""Sprite animation banks: loading animation files and stepping entity animations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional

ANIFILE_COUNT = 0x100
ANIMATION_COUNT = 0x400
SPRITEFRAME_COUNT = 0x1000
HITBOX_COUNT = 0x20
HITBOX_DIR_COUNT = 8

ANIMATION_TIMER_LIMIT = 0xF0
ANIMATION_PATH = "Data/Animations/"

SheetLoader = Callable[[str], int]
FileReader = Callable[[str], Optional[bytes]]


class AnimationError(Exception):
    """Raised when animation data is malformed or a table is full."""


class RotationStyle(IntEnum):
    NONE = 0
    FULL = 1
    DEG45 = 2
    STATIC_FRAMES = 3


@dataclass
class SpriteFrame:
    spr_x: int = 0
    spr_y: int = 0
    width: int = 0
    height: int = 0
    pivot_x: int = 0
    pivot_y: int = 0
    sheet_id: int = 0
    hitbox_id: int = 0


@dataclass
class SpriteAnimation:
    name: str = ""
    frame_count: int = 0
    speed: int = 0
    loop_point: int = 0
    rotation_style: int = RotationStyle.NONE
    frame_list_offset: int = 0


def _directions() -> list[int]:
    return [0] * HITBOX_DIR_COUNT


@dataclass
class Hitbox:
    left: list[int] = field(default_factory=_directions)
    top: list[int] = field(default_factory=_directions)
    right: list[int] = field(default_factory=_directions)
    bottom: list[int] = field(default_factory=_directions)


@dataclass
class AnimationFile:
    file_name: str = ""
    anim_count: int = 0
    ani_list_offset: int = 0
    hitbox_list_offset: int = 0


@dataclass
class AnimatedEntity:
    """The animation state an entity carries between frames."""

    animation: int = 0
    prev_animation: int = 0
    frame: int = 0
    animation_speed: int = 0
    animation_timer: int = 0


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise AnimationError("animation data is truncated")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def s8(self) -> int:
        value = self.u8()
        return value - 0x100 if value >= 0x80 else value

    def string(self) -> str:
        return self.take(self.u8()).decode("latin-1")


class AnimationBank:
    """All loaded animation files together with their animations, frames and hitboxes."""

    def __init__(self) -> None:
        self.files: list[AnimationFile] = []
        self.animations: list[SpriteAnimation] = []
        self.frames: list[SpriteFrame] = []
        self.hitboxes: list[Hitbox] = []
        self.script_frames: list[SpriteFrame] = []

    def load_animation(self, data: bytes, add_sheet: SheetLoader) -> AnimationFile:
        """Parse one animation file and append its contents to the bank.

        ``add_sheet`` is called with every sprite sheet name and returns its sheet id.
        """
        reader = _Reader(data)

        sheet_ids: dict[int, int] = {}
        for index in range(reader.u8()):
            name = reader.string()
            if name:
                sheet_ids[index] = add_sheet(name)

        animations: list[SpriteAnimation] = []
        frames: list[SpriteFrame] = []
        frame_base = len(self.frames)
        for _ in range(reader.u8()):
            name = reader.string()
            frame_count, speed, loop_point, rotation_style = reader.take(4)
            anim = SpriteAnimation(
                name=name,
                frame_count=frame_count,
                speed=speed,
                loop_point=loop_point,
                rotation_style=rotation_style,
                frame_list_offset=frame_base + len(frames),
            )
            for _ in range(frame_count):
                sheet, hitbox_id, spr_x, spr_y, width, height = reader.take(6)
                frames.append(
                    SpriteFrame(
                        spr_x=spr_x,
                        spr_y=spr_y,
                        width=width,
                        height=height,
                        pivot_x=reader.s8(),
                        pivot_y=reader.s8(),
                        sheet_id=sheet_ids.get(sheet, 0),
                        hitbox_id=hitbox_id,
                    )
                )
            # Extra rotation frames are stored after the regular ones.
            if rotation_style == RotationStyle.STATIC_FRAMES:
                anim.frame_count >>= 1
            animations.append(anim)

        hitboxes: list[Hitbox] = []
        for _ in range(reader.u8()):
            box = Hitbox()
            for d in range(HITBOX_DIR_COUNT):
                box.left[d] = reader.s8()
                box.top[d] = reader.s8()
                box.right[d] = reader.s8()
                box.bottom[d] = reader.s8()
            hitboxes.append(box)

        if len(self.animations) + len(animations) > ANIMATION_COUNT:
            raise AnimationError("too many animations loaded")
        if len(self.frames) + len(frames) > SPRITEFRAME_COUNT:
            raise AnimationError("too many sprite frames loaded")
        if len(self.hitboxes) + len(hitboxes) > HITBOX_COUNT:
            raise AnimationError("too many hitboxes loaded")

        entry = AnimationFile(
            anim_count=len(animations),
            ani_list_offset=len(self.animations),
            hitbox_list_offset=len(self.hitboxes),
        )
        self.animations.extend(animations)
        self.frames.extend(frames)
        self.hitboxes.extend(hitboxes)
        return entry

    def add_animation_file(
        self, file_name: str, read_file: FileReader, add_sheet: SheetLoader
    ) -> AnimationFile:
        """Return the already loaded file of this name, or load it.

        ``read_file`` receives the full data path and returns the file's bytes,
        or None when the file does not exist.
        """
        for existing in self.files:
            if existing.file_name == file_name:
                return existing
        if len(self.files) >= ANIFILE_COUNT:
            raise AnimationError("animation file table is full")

        data = read_file(ANIMATION_PATH + file_name)
        if data is None:
            entry = AnimationFile(file_name=file_name)
        else:
            entry = self.load_animation(data, add_sheet)
            entry.file_name = file_name
        self.files.append(entry)
        return entry

    def default_file(self) -> AnimationFile:
        """The first animation file, or an empty one if nothing is loaded."""
        return self.files[0] if self.files else AnimationFile()

    def clear(self) -> None:
        self.files.clear()
        self.animations.clear()
        self.frames.clear()
        self.hitboxes.clear()
        self.script_frames.clear()

    def process_animation(self, anim_file: AnimationFile, entity: AnimatedEntity) -> None:
        """Advance an entity's animation by one tick."""
        index = anim_file.ani_list_offset + entity.animation
        if not 0 <= index < len(self.animations):
            raise AnimationError(f"no animation at index {index}")
        anim = self.animations[index]

        if entity.animation_speed <= 0:
            entity.animation_timer += anim.speed
        else:
            if entity.animation_speed > ANIMATION_TIMER_LIMIT:
                entity.animation_speed = ANIMATION_TIMER_LIMIT
            entity.animation_timer += entity.animation_speed

        if entity.animation != entity.prev_animation:
            entity.prev_animation = entity.animation
            entity.frame = 0
            entity.animation_timer = 0
            entity.animation_speed = 0

        if entity.animation_timer >= ANIMATION_TIMER_LIMIT:
            entity.animation_timer -= ANIMATION_TIMER_LIMIT
            entity.frame += 1

        if entity.frame >= anim.frame_count:
            entity.frame = anim.loop_point