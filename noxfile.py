import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

nox.options.sessions = ["lint", "tests"]


def _install(session: nox.Session) -> None:
    session.run("poetry", "install", "--with", "test", external=True)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run the whole suite; extra arguments go straight to pytest."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
@nox.parametrize("layer", ["domain", "application", "integration"])
def layer(session: nox.Session, layer: str) -> None:
    """Run one layer of tests, selected by the directory-based markers."""
    _install(session)
    session.run("pytest", "-m", layer, *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def lint(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", "src", "tests")
