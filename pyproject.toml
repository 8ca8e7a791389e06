[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cgihttpd"
version = "0.5.0"
description = "A small threaded HTTP/1.1 server with CGI support, directory listings and sample guestbook CGI programs"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "server", "cgi", "web", "guestbook", "directory-listing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: CGI Tools/Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cgihttpd = "cgihttpd.server:main"
cgihttpd-dirlist = "cgihttpd.dirlist:main"
cgihttpd-gbook = "cgihttpd.gbook:main"
cgihttpd-guestbook-classic = "cgihttpd.guestbook_classic:main"

[tool.hatch.build.targets.wheel]
packages = ["cgihttpd"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
