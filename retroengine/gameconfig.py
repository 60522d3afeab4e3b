"""Reading the leading part of a game configuration file, up to its sound effects."""

from __future__ import annotations

from dataclasses import dataclass, field


class GameConfigError(ValueError):
    """Raised when game configuration data is truncated."""


@dataclass
class GameConfig:
    title: str = ""
    data_name: str = ""
    description: str = ""
    object_names: list[str] = field(default_factory=list)
    script_paths: list[str] = field(default_factory=list)
    variables: list[tuple[str, int]] = field(default_factory=list)
    sfx_paths: list[str] = field(default_factory=list)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise GameConfigError("game config data is truncated")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def i32(self) -> int:
        return int.from_bytes(self.take(4), "little", signed=True)

    def string(self) -> str:
        return self.take(self.u8()).decode("latin-1")


def parse_game_config(data: bytes) -> GameConfig:
    """Parse the header, objects, variables and global sound effect list."""
    reader = _Reader(data)
    config = GameConfig(
        title=reader.string(),
        data_name=reader.string(),
        description=reader.string(),
    )
    object_count = reader.u8()
    config.object_names = [reader.string() for _ in range(object_count)]
    config.script_paths = [reader.string() for _ in range(object_count)]
    for _ in range(reader.u8()):
        name = reader.string()
        config.variables.append((name, reader.i32()))
    config.sfx_paths = [reader.string() for _ in range(reader.u8())]
    return config


def sfx_short_name(path: str) -> str:
    """The name scripts use for a sound effect path.

    Everything after the first slash and before the following dot, with spaces removed.
    """
    name = []
    mode = 0
    for char in path:
        if char == "." and mode == 1:
            mode = 2
        elif char in "/\\" and mode == 0:
            mode = 1
        elif char != " " and mode == 1:
            name.append(char)
    return "".join(name)