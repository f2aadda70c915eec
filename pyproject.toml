[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "speedchain"
version = "0.1.0"
description = "A small proof-of-work blockchain node with account state, gas accounting, a mempool and a JSON-RPC interface"
requires-python = ">=3.10"
keywords = ["blockchain", "proof-of-work", "mempool", "json-rpc", "keccak", "secp256k1"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Topic :: System :: Distributed Computing",
]
dependencies = [
    "pycryptodome",
    "aiohttp",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
speedchain = "speedchain.server:main"

[tool.hatch.build.targets.wheel]
packages = ["speedchain"]

[tool.hatch.build.targets.sdist]
include = ["speedchain", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
