[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "borshkit"
version = "0.1.0"
description = "Borsh binary serialization with self-describing schemas"
requires-python = ">=3.10"
dependencies = []
keywords = ["borsh", "serialization", "binary", "schema", "encoding"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[project.scripts]
borshkit-schema-schema = "borshkit.schema_helpers:main"

[tool.hatch.build.targets.wheel]
packages = ["borshkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
