[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bytevision-mcp"
version = "0.1.0"
description = "Model Context Protocol server that generates text completions with a local llama-cli executable"
requires-python = ">=3.10"
keywords = ["mcp", "llm", "llama", "completion", "json-rpc"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
bytevision-mcp = "bytevision_mcp.server:main"

[tool.hatch.build.targets.wheel]
packages = ["bytevision_mcp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
