[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "anonpeer"
version = "0.1.0"
description = "Anonymous peer-to-peer messaging with layered routing encryption, a hidden e-mail store and a hidden HTTP service gateway"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = [
    "p2p",
    "anonymity",
    "onion-routing",
    "friend-to-friend",
    "rsa",
    "aes",
    "proof-of-work",
]
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
    "Topic :: Communications :: File Sharing",
    "Topic :: Security :: Cryptography",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
anonpeer-hes = "anonpeer.hes.server:main"
anonpeer-hls = "anonpeer.hls.service:main"

[tool.hatch.build.targets.wheel]
packages = ["anonpeer"]

[tool.pytest.ini_options]
addopts = "-ra"
