"""Path management utilities for devchain-deploy."""

from pathlib import Path
from typing import Optional, Union


def get_default_project_dir() -> Path:
    """
    Get default Foundry project directory.

    Returns:
        Path to ./sc
    """
    return Path.cwd() / "sc"


def get_default_config_path(config_root: Optional[Union[Path, str]] = None) -> Path:
    """
    Get deployment descriptor path.

    Args:
        config_root: Custom config directory (defaults to ./config)

    Returns:
        Path to contract-config.json
    """
    if config_root is None:
        config_root = Path.cwd() / "config"
    else:
        config_root = Path(config_root).absolute()

    return config_root / "contract-config.json"


def get_broadcast_dir(
    project_dir: Union[Path, str], script_identifier: str, chain_id: int
) -> Path:
    """
    Get the directory where the deploy tool writes broadcast artifacts.

    Args:
        project_dir: Foundry project root
        script_identifier: Script target, e.g. "script/Foo.s.sol:FooScript"
        chain_id: Chain id the script was broadcast to

    Returns:
        Path to {project_dir}/broadcast/{script file name}/{chain_id}
    """
    script_file = script_identifier.split(":", 1)[0]
    return Path(project_dir) / "broadcast" / Path(script_file).name / str(chain_id)
