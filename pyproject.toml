[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minnow"
version = "0.1.0"
description = "Building blocks for a user-space network stack: Ethernet, ARP and IPv4 codecs, sockets, TUN/TAP devices and an event loop"
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "tcp/ip", "ethernet", "arp", "ipv4", "checksum", "event loop", "tun", "tap"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["minnow"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
