[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "auth0_exporter"
version = "0.2.1"
description = "A Prometheus exporter that turns Auth0 tenant log events and users into metrics."
requires-python = ">=3.10"
dependencies = [
    "requests",
]
keywords = ["auth0", "prometheus", "exporter", "metrics", "monitoring", "logs"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
auth0-exporter = "auth0_exporter.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["auth0_exporter"]

[tool.hatch.build.targets.sdist]
include = ["auth0_exporter", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
