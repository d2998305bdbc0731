[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dungeonmcp"
version = "1.0.0"
description = "A text dungeon role-playing game driven by tool calls, with function-calling clients for local LLM engines"
requires-python = ">=3.10"
keywords = ["dungeon", "rpg", "mcp", "function-calling", "llm", "text-adventure"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Role-Playing",
]
dependencies = [
    "httpx",
]

[project.optional-dependencies]
test = [
    "pytest",
    "respx",
]

[project.scripts]
dungeonmcp-hello = "dungeonmcp.function_calling:main"
dungeonmcp-explorer = "dungeonmcp.explorer:main"

[tool.hatch.build.targets.wheel]
packages = ["dungeonmcp"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
