"""Top-level deployment state machine."""

import logging
from typing import Callable, List, Optional

from . import probe, resolver, runner, verifier
from .cancellation import CancellationToken, install_signal_handlers
from .constants import SETTLE_DELAY
from .exceptions import DeploymentCommandFailed, DeploymentError, VerificationInconclusive
from .locator import ToolLocator
from .settings import Settings
from .store import ConfigStore
from .supervisor import NodeProcessHandle, NodeSupervisor
from .types import DeploymentDescriptor, DeploymentOutput, OrchestratorState, utc_timestamp

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1


class Orchestrator:
    """
    Deploys the contract to the local devchain exactly once.

    One ``run`` probes the node (starting it when nothing answers), skips
    deployment when the persisted descriptor still points at live bytecode, and
    otherwise deploys, extracts the address, verifies it and persists a new
    descriptor. A node started by the run is terminated when the run ends; a
    node that was already running is left alone.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        supervisor: Optional[NodeSupervisor] = None,
        locator: Optional[ToolLocator] = None,
        store: Optional[ConfigStore] = None,
        reachable: Callable[[str], bool] = probe.is_reachable,
        wait_until_reachable: Callable[..., None] = probe.wait_until_reachable,
        deploy: Callable[..., DeploymentOutput] = runner.run_deployment,
        resolve: Callable[..., str] = resolver.resolve_address,
        ensure_deployed: Callable[[str, str], None] = verifier.ensure_deployed,
        settle_delay: float = SETTLE_DELAY,
        token: Optional[CancellationToken] = None,
    ):
        self.settings = settings or Settings.from_env()
        self.supervisor = supervisor or NodeSupervisor(binary=self.settings.node_binary)
        self.locator = locator or ToolLocator()
        self.store = store or ConfigStore(self.settings.config_path)
        self.token = token or CancellationToken()
        self.settle_delay = settle_delay

        self._reachable = reachable
        self._wait_until_reachable = wait_until_reachable
        self._deploy = deploy
        self._resolve = resolve
        self._ensure_deployed = ensure_deployed

        self.state = OrchestratorState.IDLE
        self.history: List[OrchestratorState] = [OrchestratorState.IDLE]
        self.handle: Optional[NodeProcessHandle] = None
        self.descriptor: Optional[DeploymentDescriptor] = None
        self.deployed = False
        self.error: Optional[DeploymentError] = None
        self.warnings: List[DeploymentError] = []

    def _transition(self, state: OrchestratorState) -> None:
        logger.debug("%s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def run(self) -> int:
        """
        Execute one orchestration run.

        Returns:
            0 on success (including when the contract was already deployed), 1 on failure
        """
        with install_signal_handlers(self.token):
            try:
                self._execute()
            except DeploymentError as e:
                self._fail(e)
                return EXIT_FAILED
            except Exception as e:
                error = DeploymentError(f"Unexpected {type(e).__name__}: {e}")
                error.__cause__ = e
                logger.debug("Unexpected error during run", exc_info=True)
                self._fail(error)
                return EXIT_FAILED
            finally:
                self.cleanup()
        return EXIT_OK

    def _fail(self, error: DeploymentError) -> None:
        self.error = error
        self._transition(OrchestratorState.FAILED)
        self.report(error)

    def _execute(self) -> None:
        settings = self.settings

        self._transition(OrchestratorState.PROBING_NODE)
        logger.info("Checking whether a node is running at %s", settings.rpc_url)
        if self._reachable(settings.rpc_url):
            logger.info("Node already running at %s", settings.rpc_url)
        else:
            logger.info("Node not running, starting it")
            self._start_node()

        self._transition(OrchestratorState.CHECKING_EXISTING_DEPLOYMENT)
        existing = self.store.check_existing()
        if existing is not None:
            logger.info("Checking existing deployment at %s", existing.contract_address)
            if self.store.is_deployed(existing, settings.rpc_url):
                logger.info(
                    "Contract already deployed at %s, nothing to do", existing.contract_address
                )
                self.descriptor = existing
                self._transition(OrchestratorState.DONE)
                return
            logger.info("Contract missing at %s, redeploying", existing.contract_address)

        self._transition(OrchestratorState.LOCATING_TOOL)
        tool_path = self.locator.locate(settings.deploy_tool)

        self._transition(OrchestratorState.RUNNING_DEPLOYMENT)
        result = self._deploy(
            tool_path,
            settings.script,
            settings.rpc_url,
            settings.private_key,
            settings.project_dir,
        )

        self._transition(OrchestratorState.EXTRACTING_ADDRESS)
        address = self._resolve(result.combined_output, settings.broadcast_dir)

        self._transition(OrchestratorState.VERIFYING_DEPLOYMENT)
        self.token.sleep(self.settle_delay)
        try:
            self._ensure_deployed(settings.rpc_url, address)
        except VerificationInconclusive as e:
            # Unresolved: persisting here can leave clients pointed at an address without code
            self.warnings.append(e)
            logger.warning(
                "Contract deployment could not be verified (%s); persisting the descriptor anyway",
                e,
            )

        self._transition(OrchestratorState.PERSISTING_CONFIG)
        descriptor = DeploymentDescriptor(
            contract_address=address,
            rpc_url=settings.rpc_url,
            network=settings.network,
            chain_id=settings.chain_id,
            deployed_at=utc_timestamp(),
        )
        self.store.persist(descriptor)
        self.descriptor = descriptor
        self.deployed = True

        logger.info("Contract deployed at %s", address)
        self._transition(OrchestratorState.DONE)

    def _start_node(self) -> None:
        settings = self.settings

        self._transition(OrchestratorState.STARTING_NODE)
        self.handle = self.supervisor.spawn(
            settings.host, settings.port, settings.project_dir, token=self.token
        )

        self._transition(OrchestratorState.WAITING_READY)
        self.supervisor.wait_ready(self.handle, token=self.token)
        self._wait_until_reachable(settings.rpc_url, token=self.token)

    def cleanup(self) -> None:
        """Terminate the node if this run started it. Safe to call repeatedly."""
        if self.handle is not None:
            self.supervisor.terminate(self.handle)
            self.token.remove_callback(self.handle.terminate)

    def report(self, error: DeploymentError) -> None:
        """Log a diagnostic for a fatal error: kind, message, captured output and hint."""
        lines = [f"Deployment failed [{type(error).__name__}]: {error}"]
        if isinstance(error, DeploymentCommandFailed) and error.output:
            lines.append("Captured output:")
            lines.append(error.output.rstrip())
        if error.hint:
            lines.append(f"Hint: {error.hint}")
        logger.error("\n".join(lines))
