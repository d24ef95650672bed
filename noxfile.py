import os
import re
from sys import version_info

import nox
import nox_uv

PYTHON_VERSION = f"{version_info[0]}.{version_info[1]}"
PYTHON_VERSIONS = ["3.10", "3.11", "3.12", "3.13"]
PYTHON_RE_PATTERN = re.compile(r"\d\.\d{1,2}")
IS_CI = bool(os.environ.get("CI"))

nox.options.default_venv_backend = "uv"
nox.options.sessions = ["test", "type", "deps", "lint", "doctest"]


def get_python_version(session: nox.Session) -> str:
    matches = PYTHON_RE_PATTERN.search(session.name)
    return matches.group(0) if matches else PYTHON_VERSION


@nox_uv.session(uv_groups=["base"])
def dev(session: nox.Session) -> None:
    """Set up a python development environment at `.venv-{version}`. Specify version using `nox -P {version} -e dev`."""
    python_version = get_python_version(session)
    venv_path = f".venv-{python_version}"
    session.run("rm", "-rf", venv_path, external=True)
    session.run("uv", "venv", "-p", python_version, "--seed", venv_path, external=True)
    session.run("uv", "sync", "-p", venv_path, "--group=test", external=True)


@nox_uv.session(uv_groups=["test"])
def test(session: nox.Session) -> None:
    """Run unit tests with coverage reporting. Specify version using `nox -P {version} -e test`."""
    python_version = get_python_version(session)
    xdist_args = ["-n4", "--dist", "loadfile"]
    cov_args = ["--cov", f"--junitxml=output/junit.{python_version}.xml"]
    cov_term_args = ["--cov-report", "term"]
    cov_xml_args = ["--cov-report", f"xml:output/coverage.{python_version}.xml"]

    session.run("pytest", *xdist_args, *cov_args, *cov_term_args, *cov_xml_args, *session.posargs)
    session.run("mv", ".coverage", f"output/.coverage.{python_version}", external=True)


@nox_uv.session
def unit(session: nox.Session) -> None:
    """Alias for `test` session."""
    test(session)


@nox_uv.session(uv_groups=["type"])
def type(session: nox.Session) -> None:  # noqa: A001
    """Run type checks and verify external types. Specify version using `nox -P {version} -e type`."""
    session.run("pyright", "--stats", "src/", "tests/")
    session.run("pyright", "--ignoreexternal", "--verifytypes", "centroidlink")


@nox_uv.session(uv_only_groups=["base"], reuse_venv=False)
def deps(session: nox.Session) -> None:
    """Run unit tests against the lowest supported dependency versions."""
    session.run_install("uv", "pip", "install", ".[test]", "--resolution=lowest-direct")
    session.run("pytest", "-m", "not optional")


@nox_uv.session(uv_only_groups=["lint"], uv_no_install_project=True)
def lint(session: nox.Session) -> None:
    """Perform linting and spellcheck."""
    session.run("ruff", "check", "--show-fixes", "--exit-non-zero-on-fix", "--fix")
    session.run("ruff", "format", "--check" if IS_CI else ".")
    session.run("codespell")


@nox_uv.session(uv_groups=["test"])
def doctest(session: nox.Session) -> None:
    """Run docstring tests."""
    target = session.posargs if session.posargs else ["src/centroidlink"]
    session.run("pytest", "--doctest-modules", "--doctest-continue-on-failure", "--disable-warnings", *target)
