[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "seonaut"
version = "0.1.0"
description = "Website crawling and SEO auditing toolkit: crawler, robots.txt and sitemap checks, WACZ archiving and page issue reporters."
requires-python = ">=3.11"
dependencies = [
    "lxml",
    "requests",
]
keywords = ["seo", "crawler", "audit", "robots.txt", "sitemap", "wacz", "warc", "hreflang", "canonical"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Site Management",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["seonaut"]

[tool.hatch.build.targets.sdist]
include = [
    "seonaut",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
