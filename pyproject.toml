[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "retroengine"
version = "0.1.0"
description = "Sprite animation data, game configuration parsing and software audio mixing for a retro 2D game engine"
requires-python = ">=3.10"
dependencies = []
keywords = ["game engine", "animation", "sprites", "audio mixing", "wav", "retro"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Side-Scrolling/Arcade Games",
    "Topic :: Multimedia :: Sound/Audio :: Mixers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["retroengine"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
