[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "faceauthd"
version = "0.1.0"
description = "Face authentication daemon: enrolment, verification and on-disk storage of face embeddings, with a PAM helper socket"
requires-python = ">=3.10"
dependencies = []
keywords = ["face", "authentication", "biometrics", "pam", "daemon", "embeddings"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Security",
    "Topic :: System :: Systems Administration :: Authentication/Directory",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
faceauthd = "faceauthd.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["faceauthd"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
