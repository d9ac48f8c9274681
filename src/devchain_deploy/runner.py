"""Invocation of the deploy tool."""

import logging
import subprocess
from pathlib import Path
from typing import List, Union

from .constants import FOUNDRY_INSTALL_HINT
from .exceptions import DeploymentCommandFailed, ToolNotFound
from .types import DeploymentOutput, ToolPath

logger = logging.getLogger(__name__)

# Shell diagnostics meaning the executable itself was missing
_NOT_FOUND_MARKERS = ("not recognized", "command not found")
_SHELL_NOT_FOUND_EXIT = 127


def build_command(
    tool_path: Union[ToolPath, str],
    script: str,
    rpc_url: str,
    private_key: str,
) -> List[str]:
    """Argv for broadcasting a deploy script."""
    return [
        str(tool_path),
        "script",
        script,
        "--rpc-url",
        rpc_url,
        "--broadcast",
        "--private-key",
        private_key,
    ]


def _redact(command: List[str], secret: str) -> str:
    return " ".join("***" if part == secret else part for part in command)


def run_deployment(
    tool_path: Union[ToolPath, str],
    script: str,
    rpc_url: str,
    private_key: str,
    work_dir: Union[Path, str],
) -> DeploymentOutput:
    """
    Run the deploy script once and capture its output.

    stdout and stderr are merged into one ordered stream; the tool writes
    progress to stderr even on success.

    Args:
        tool_path: Deploy tool executable
        script: Script target, e.g. "script/Foo.s.sol:FooScript"
        rpc_url: Node RPC endpoint
        private_key: Signing key for the broadcast
        work_dir: Project directory to run in

    Returns:
        DeploymentOutput with the combined output and a zero exit code

    Raises:
        ToolNotFound: If the executable cannot be run
        DeploymentCommandFailed: If the tool exits with a non-zero status
    """
    command = build_command(tool_path, script, rpc_url, private_key)
    logger.info("Deploying: %s", _redact(command, private_key))

    try:
        completed = subprocess.run(
            command,
            cwd=str(work_dir),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError as e:
        if not Path(work_dir).is_dir():
            raise DeploymentCommandFailed(
                f"Project directory does not exist: {work_dir}"
            ) from e
        raise ToolNotFound(
            f"Deploy tool '{tool_path}' not found", hint=FOUNDRY_INSTALL_HINT
        ) from e
    except OSError as e:
        raise DeploymentCommandFailed(f"Could not run '{tool_path}': {e}") from e

    output = completed.stdout or ""
    for line in output.splitlines():
        logger.debug("deploy: %s", line)

    if completed.returncode != 0:
        lowered = output.lower()
        if completed.returncode == _SHELL_NOT_FOUND_EXIT or any(
            marker in lowered for marker in _NOT_FOUND_MARKERS
        ):
            raise ToolNotFound(
                f"Deploy tool '{tool_path}' could not be executed:\n{output}".rstrip(),
                hint=FOUNDRY_INSTALL_HINT,
            )
        raise DeploymentCommandFailed(
            f"Deployment command exited with code {completed.returncode}",
            output=output,
            exit_code=completed.returncode,
        )

    return DeploymentOutput(combined_output=output, exit_code=completed.returncode)
