import os
from pathlib import Path
import nox

# Reuse existing virtualenvs for faster runs
nox.options.reuse_existing_virtualenvs = True
# Default sessions when running "nox"
nox.options.sessions = ["lint", "unit", "integration"]

# Common dependencies for test sessions
COMMON_DEPS = ["-e", ".[test]"]

# Environment variables to propagate
PASSED_ENV_VARS = [
    "DATABASE_URL",
    "SECRET_KEY",
    "ENVIRONMENT",
    "LOG_LEVEL",
    "POLL_ENFORCE_END_DATE",
    "REDIS_URL",
]


def _set_env(session):
    """
    Propagate database and test-related environment variables into the session.
    Also ensure the project root is on PYTHONPATH.
    """
    session.env["PYTHONPATH"] = str(Path.cwd())
    for var in PASSED_ENV_VARS:
        if var in os.environ:
            session.env[var] = os.environ[var]


@nox.session(name="lint")
def lint(session):
    """
    Code formatting, linting, and type-checks:
      - isort
      - black
      - flake8
      - mypy
    """
    _set_env(session)
    session.install("isort", "black", "flake8", "mypy")
    session.run("isort", "app/", "tests/")
    session.run("black", "app/", "tests/")
    session.run("flake8", "app/", "tests/")
    session.run("mypy", "app/")


@nox.session(name="unit")
def unit(session):
    """
    Run unit tests against an in-memory SQLite database.
    Pass positional args to target specific tests.
    Usage:
      nox -s unit             # runs all tests under tests/unit
      nox -s unit -- tests/unit/test_services/test_vote_service.py
    """
    _set_env(session)
    session.install(*COMMON_DEPS)
    tests = session.posargs or ["tests/unit"]
    htmlcov_path = ".nox/htmlcov"
    session.run(
        "pytest",
        *tests,
        "--maxfail=1",
        "-vv",
        "--tb=short",
        "--cov=app",
        "--cov-report=term-missing",
        "--cov-report=html:" + htmlcov_path,
        "--cov-report=xml",
        "--cov-fail-under=80",
    )


@nox.session(name="integration")
def integration(session):
    """
    Run the API tests through FastAPI's TestClient.
    Usage:
      nox -s integration
      nox -s integration -- -m "not rate_limit"
    """
    _set_env(session)
    session.install(*COMMON_DEPS)
    tests = session.posargs or ["tests/integration"]
    session.run(
        "pytest",
        *tests,
        "--maxfail=1",
        "-vv",
        "--tb=short",
    )
