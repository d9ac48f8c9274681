"""Command line entry point for devchain-deploy."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .constants import NODE_START_HINT
from .exceptions import NodeUnreachable
from .orchestrator import Orchestrator
from .probe import get_block_number
from .settings import Settings
from .store import ConfigStore

logger = logging.getLogger(__name__)


def make_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="devchain-deploy",
        description="Deploy the contract to a local devchain node exactly once.",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug output.")
    ap.add_argument("--rpc-url", help="Node RPC endpoint (default: $DEVCHAIN_RPC_URL).")
    ap.add_argument("--host", help="Bind address for a node started by this tool.")
    ap.add_argument("--port", type=int, help="Port for a node started by this tool.")
    ap.add_argument("--project-dir", type=Path, help="Foundry project directory.")
    ap.add_argument("--config-path", type=Path, help="Deployment descriptor file.")
    ap.add_argument("--script", help="Deploy script target, e.g. script/Foo.s.sol:FooScript.")

    sub = ap.add_subparsers(dest="command")
    sub.add_parser("deploy", help="Start the node if needed and deploy (default).")
    sub.add_parser("check", help="Check that the node is running.")
    sub.add_parser("show-config", help="Print the deployment descriptor clients will see.")
    return ap


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def cmd_deploy(settings: Settings) -> int:
    return Orchestrator(settings).run()


def cmd_check(settings: Settings) -> int:
    try:
        block_number = get_block_number(settings.rpc_url)
    except NodeUnreachable as e:
        logger.error("Node is not reachable at %s: %s", settings.rpc_url, e)
        logger.error("Hint: %s", NODE_START_HINT)
        return 1
    logger.info("Node is running at %s (block %d)", settings.rpc_url, block_number)
    return 0


def cmd_show_config(settings: Settings) -> int:
    descriptor = ConfigStore(settings.config_path).load_or_default()
    print(json.dumps(descriptor.to_dict(), indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = make_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = Settings.from_env().with_overrides(
            rpc_url=args.rpc_url,
            host=args.host,
            port=args.port,
            project_dir=args.project_dir.absolute() if args.project_dir else None,
            config_path=args.config_path.absolute() if args.config_path else None,
            script=args.script,
        )
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    match args.command:
        case "check":
            return cmd_check(settings)
        case "show-config":
            return cmd_show_config(settings)
        case _:
            return cmd_deploy(settings)


if __name__ == "__main__":
    sys.exit(main())
