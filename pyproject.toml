[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "echospider"
version = "1.0.0"
description = "Concurrent web crawler that extracts titles, descriptions, keywords, links and images"
requires-python = ">=3.10"
keywords = ["crawler", "spider", "robots.txt", "scraping", "html"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
]
dependencies = [
    "requests",
    "beautifulsoup4",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
echospider = "echospider.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["echospider"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
