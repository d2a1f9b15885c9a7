"""Nox sessions for cloudagent.

The default run is lint, type checking and the test suite. Tests never
reach GCP: terraform, gcloud and SSH are mocked throughout.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import nox

nox.options.default_venv_backend = "uv"
nox.options.reuse_existing_virtualenvs = True
nox.options.sessions = ["lint", "type_check", "tests"]

PYTHON_VERSIONS = ["3.11", "3.12"]
PYTHON_DEFAULT = "3.11"

PACKAGE = "cloudagent"
CHECKED_PATHS = ["src", "tests", "noxfile.py"]
TYPE_STUBS = ["types-paramiko", "types-PyYAML", "types-requests"]

ARTIFACTS = [
    "build",
    "dist",
    "src/*.egg-info",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    "htmlcov",
    ".coverage",
    ".coverage.*",
]


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run pytest with coverage.

    Usage:
        nox -s tests-3.12 -- -k provisioner
    """
    session.install("-e", ".[test]")
    session.run(
        "pytest",
        f"--cov={PACKAGE}",
        "--cov-report=term-missing",
        *session.posargs,
    )


@nox.session(python=PYTHON_DEFAULT)
def lint(session: nox.Session) -> None:
    """Run ruff checks; pass ``--fix`` to apply fixes."""
    session.install("ruff")
    session.run("ruff", "check", *CHECKED_PATHS, *session.posargs)


@nox.session(name="format", python=PYTHON_DEFAULT)
def format_(session: nox.Session) -> None:
    """Check formatting, or apply it with ``-- --write``."""
    session.install("ruff")
    if "--write" in session.posargs:
        session.run("ruff", "check", "--select", "I", "--fix", *CHECKED_PATHS)
        session.run("ruff", "format", *CHECKED_PATHS)
    else:
        session.run("ruff", "check", "--select", "I", *CHECKED_PATHS)
        session.run("ruff", "format", "--check", *CHECKED_PATHS)


@nox.session(python=PYTHON_DEFAULT)
def type_check(session: nox.Session) -> None:
    """Run mypy on the package."""
    session.install("mypy", *TYPE_STUBS)
    session.install("-e", ".")
    session.run("mypy", f"src/{PACKAGE}", *session.posargs)


@nox.session(python=PYTHON_DEFAULT)
def dev(session: nox.Session) -> None:
    """Install the package with its dev extras."""
    session.install("-e", ".[dev]")
    session.log("Development environment ready")


@nox.session(python=False)
def clean(session: nox.Session) -> None:
    """Remove build, cache and coverage artifacts."""
    for pattern in ARTIFACTS:
        for path in Path().glob(pattern):
            session.log(f"Removing {path}")
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()

    for pycache in Path().rglob("__pycache__"):
        shutil.rmtree(pycache)
