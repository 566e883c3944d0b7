[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tokenvm"
version = "0.1.0"
description = "Token ledger state machine: assets, limit orders, cross-chain warp transfers, Ed25519 auth and a genesis/monitoring command-line tool."
requires-python = ">=3.10"
keywords = ["ledger", "tokens", "order-book", "ed25519", "warp", "genesis", "prometheus"]
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
    "Topic :: System :: Distributed Computing",
]
dependencies = [
    "cryptography",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
token-cli = "tokenvm.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tokenvm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
