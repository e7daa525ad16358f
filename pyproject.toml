[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smsgw"
version = "0.1.0"
description = "CMPP and SMGP short-message gateway protocol codecs, sequence generators and configuration helpers"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["sms", "cmpp", "smgp", "gateway", "telephony", "protocol", "codec", "tlv"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Telephony",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["smsgw"]

[tool.hatch.build.targets.sdist]
include = [
    "smsgw",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
