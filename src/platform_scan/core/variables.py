"""Build the CLI commands that recreate a project's variables on another project.

Nothing here writes to the API: the result is a list of shell lines for a
human to review and run.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Callable, Sequence
from typing import Protocol

from platform_scan.models import EnvironmentVariable, Variable

logger = logging.getLogger(__name__)

SecretReader = Callable[[str, str, str | None, str], str]


class VariableSource(Protocol):
    async def variables(self, project_id: str) -> list[Variable]: ...

    async def environment_variables(self, project_id: str, environment: str) -> list[EnvironmentVariable]: ...


def read_runtime_value(project_id: str, environment: str, app: str | None, name: str) -> str:
    """Read an ``env:`` variable's value from inside a running container over ``platform ssh``."""
    command = ["platform", "ssh", "-p", project_id, "-e", environment]
    if app:
        command += ["-A", app]
    command.append(f"echo -n ${name.removeprefix('env:')}")
    result = subprocess.run(command, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        logger.warning("Could not read %s from %s/%s: %s", name, project_id, environment, result.stderr.strip())
        return ""
    return result.stdout


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _value_of(
    variable: Variable,
    project_id: str,
    environment: str,
    app: str | None,
    read_secret: SecretReader,
) -> str:
    if variable.value is not None:
        return variable.value
    if variable.visible_runtime and variable.name.startswith("env:"):
        return read_secret(project_id, environment, app, variable.name)
    return ""


def project_variable_commands(
    variables: Sequence[Variable],
    source: str,
    destination: str,
    environment: str,
    app: str | None,
    read_secret: SecretReader,
) -> list[str]:
    lines: list[str] = []
    for variable in variables:
        value = _value_of(variable, source, environment, app, read_secret)
        if variable.is_sensitive and not variable.visible_runtime:
            lines.append(f"# {variable.name} must be found separately")
            lines.append("# ")
        lines.append(
            "platform variable:create --no-wait --yes --level=project"
            f" --project={destination}"
            f" --name={shlex.quote(variable.name)}"
            f" --value={shlex.quote(value)}"
            f" --json={_flag(variable.is_json)}"
            f" --sensitive={_flag(variable.is_sensitive)}"
            f" --visible-build={_flag(variable.visible_build)}"
            f" --visible-runtime={_flag(variable.visible_runtime)}"
        )
    return lines


def environment_variable_commands(
    variables: Sequence[EnvironmentVariable],
    source: str,
    destination: str,
    environment: str,
    app: str | None,
    read_secret: SecretReader,
) -> list[str]:
    lines: list[str] = []
    for variable in variables:
        if variable.inherited:
            lines.append(f"# {variable.name} inherited")
            continue
        value = _value_of(variable, source, variable.environment or environment, app, read_secret)
        if variable.is_sensitive and not variable.visible_runtime:
            lines.append("# ")
        lines.append(
            "platform variable:create --no-wait --yes --level=environment"
            f" --project={destination}"
            f" --environment={shlex.quote(variable.environment or environment)}"
            f" --name={shlex.quote(variable.name)}"
            f" --value={shlex.quote(value)}"
            f" --json={_flag(variable.is_json)}"
            f" --sensitive={_flag(variable.is_sensitive)}"
            f" --visible-build={_flag(variable.visible_build)}"
            f" --visible-runtime={_flag(variable.visible_runtime)}"
            f" --enabled={_flag(variable.is_enabled)}"
            f" --inheritable={_flag(variable.is_inheritable)}"
        )
    lines.append(f"platform redeploy --project={destination} --environment={shlex.quote(environment)}")
    return lines


async def build_copy_plan(
    api: VariableSource,
    source: str,
    destination: str,
    environments: Sequence[str],
    app: str | None = None,
    read_secret: SecretReader = read_runtime_value,
) -> list[str]:
    if not environments:
        raise ValueError("At least one environment is required.")
    lines = project_variable_commands(
        await api.variables(source), source, destination, environments[0], app, read_secret
    )
    for environment in environments:
        lines += environment_variable_commands(
            await api.environment_variables(source, environment), source, destination, environment, app, read_secret
        )
    return lines
