[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zeroplugins"
version = "0.1.0"
description = "Chat-bot plugin logic: sign-in scores, sleep tracking, wordle, tarot, picture sets and reply helpers"
requires-python = ">=3.10"
keywords = ["chatbot", "plugins", "wordle", "tarot", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Natural Language :: Chinese (Simplified)",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]
dependencies = [
    "pillow",
    "lxml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["zeroplugins"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
