"""Discovery of the deploy tool executable across operating systems."""

import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .constants import DEPLOY_TOOL, VERSION_CHECK_TIMEOUT
from .types import ToolPath

logger = logging.getLogger(__name__)


def candidate_paths(
    tool_name: str,
    platform: Optional[str] = None,
    home: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> List[Path]:
    """
    Conventional install locations for a Foundry-style tool.

    Args:
        tool_name: Executable name without extension, e.g. "forge"
        platform: sys.platform value (defaults to the running platform)
        home: Home directory (defaults to Path.home())
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Candidate absolute paths in probe order
    """
    if platform is None:
        platform = sys.platform
    if home is None:
        home = Path.home()
    if environ is None:
        environ = dict(os.environ)

    if platform.startswith("win"):
        exe = f"{tool_name}.exe"
        user_profile = Path(environ.get("USERPROFILE") or home)
        return [
            home / ".foundry" / "bin" / exe,
            home / ".cargo" / "bin" / exe,
            user_profile / ".foundry" / "bin" / exe,
            Path("C:\\Program Files\\Foundry\\bin") / exe,
        ]

    return [
        home / ".foundry" / "bin" / tool_name,
        home / ".cargo" / "bin" / tool_name,
        Path("/usr/local/bin") / tool_name,
        Path("/usr/bin") / tool_name,
    ]


class ToolLocator:
    """
    Finds the deploy tool, caching the answer for the lifetime of the locator.

    Strategies, in order: run ``<tool> --version`` through PATH, ask the OS
    lookup (which/where), probe conventional install directories, and finally
    fall back to the bare name so the real error surfaces when it is executed.
    """

    def __init__(
        self,
        platform: Optional[str] = None,
        home: Optional[Path] = None,
        version_timeout: float = VERSION_CHECK_TIMEOUT,
    ):
        self.platform = platform or sys.platform
        self.home = home
        self.version_timeout = version_timeout
        self._cache: Dict[str, ToolPath] = {}

    def locate(self, tool_name: str = DEPLOY_TOOL) -> ToolPath:
        """
        Locate a tool executable.

        Args:
            tool_name: Executable name, e.g. "forge"

        Returns:
            ToolPath; never raises for a missing tool
        """
        if tool_name in self._cache:
            return self._cache[tool_name]

        tool_path = self._locate(tool_name)
        if tool_path.strategy == "fallback":
            logger.warning(
                "Could not find %s on PATH or in common install locations, trying it anyway",
                tool_name,
            )
        else:
            logger.info("Using %s (found via %s)", tool_path.path, tool_path.strategy)

        self._cache[tool_name] = tool_path
        return tool_path

    def _locate(self, tool_name: str) -> ToolPath:
        if self._responds_to_version(tool_name):
            return ToolPath(tool_name, "path")

        found = self._which(tool_name)
        if found is not None:
            return ToolPath(found, "which")

        for candidate in candidate_paths(tool_name, self.platform, self.home):
            if candidate.is_file():
                return ToolPath(str(candidate), "install-dir")

        return ToolPath(tool_name, "fallback")

    def _responds_to_version(self, tool_name: str) -> bool:
        try:
            subprocess.run(
                [tool_name, "--version"],
                check=True,
                capture_output=True,
                timeout=self.version_timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("%s --version failed: %s", tool_name, e)
            return False
        return True

    def _which(self, tool_name: str) -> Optional[str]:
        found = shutil.which(tool_name)
        if found and os.path.exists(found):
            return str(Path(found).absolute())
        return None
