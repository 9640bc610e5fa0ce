[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gatherer"
version = "0.1.0"
description = "Building blocks for web scrapers: requests, responses, XPath extraction, rate limits, caching, proxies and debugging"
requires-python = ">=3.10"
keywords = ["scraping", "crawler", "spider", "html", "xpath", "rate-limit"]
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
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "requests",
    "lxml",
    "charset-normalizer",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gatherer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
