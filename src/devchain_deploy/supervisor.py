"""Supervision of a devchain node process started by this tool."""

import logging
import queue
import subprocess
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .cancellation import CancellationToken
from .constants import (
    NODE_BINARY,
    NODE_INSTALL_HINT,
    NODE_START_HINT,
    NODE_START_TIMEOUT,
    NODE_STOP_TIMEOUT,
    READINESS_MARKER,
)
from .exceptions import NodeStartFailed, NodeStartTimeout
from .types import NodeState

logger = logging.getLogger(__name__)

# Granularity of the readiness wait, so cancellation is noticed promptly
_POLL_INTERVAL = 0.2


class NodeProcessHandle:
    """
    Ownership record for a node process launched by this tool.

    Only nodes started by the orchestrator get a handle; an externally running
    node is never terminated. ``terminate`` is idempotent and safe to call from
    a signal handler.
    """

    def __init__(self, process: subprocess.Popen, stop_timeout: float = NODE_STOP_TIMEOUT):
        self.process = process
        self.stop_timeout = stop_timeout
        self.output: List[str] = []
        self.lines: "queue.Queue[Optional[str]]" = queue.Queue()
        self._terminated = False
        self._lock = threading.RLock()

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def terminated(self) -> bool:
        return self._terminated

    def terminate(self) -> None:
        """Stop the owned process: SIGTERM, then kill if it does not exit in time."""
        with self._lock:
            if self._terminated:
                return
            self._terminated = True

            if self.process.poll() is not None:
                return

            logger.info("Stopping node (pid %d)", self.process.pid)
            self.process.terminate()
            try:
                self.process.wait(timeout=self.stop_timeout)
            except subprocess.TimeoutExpired:
                logger.warning("Node (pid %d) ignored SIGTERM, killing it", self.process.pid)
                self.process.kill()
                self.process.wait()


def _pump_output(stream, lines: "queue.Queue[Optional[str]]") -> None:
    # Runs until the child closes its output; None marks EOF
    try:
        for line in stream:
            lines.put(line.rstrip("\r\n"))
    except (OSError, ValueError):
        pass
    finally:
        lines.put(None)


class NodeSupervisor:
    """
    Starts a node and waits for its readiness announcement.

    State moves NOT_STARTED -> STARTING -> READY, START_FAILED or TIMED_OUT.
    """

    def __init__(
        self,
        binary: str = NODE_BINARY,
        readiness_marker: str = READINESS_MARKER,
        timeout: float = NODE_START_TIMEOUT,
        argv: Optional[Sequence[str]] = None,
    ):
        """
        Initialize the supervisor.

        Args:
            binary: Node executable
            readiness_marker: Substring announcing the node accepts connections
            timeout: Seconds to wait for the marker
            argv: Full command line to use instead of ``binary --host .. --port ..``
        """
        self.binary = binary
        self.readiness_marker = readiness_marker
        self.timeout = timeout
        self.argv = list(argv) if argv is not None else None
        self.state = NodeState.NOT_STARTED
        self.handle: Optional[NodeProcessHandle] = None

    def build_command(self, host: str, port: int) -> List[str]:
        if self.argv is not None:
            return list(self.argv)
        return [self.binary, "--host", host, "--port", str(port)]

    def start(
        self,
        host: str,
        port: int,
        work_dir: Union[Path, str, None] = None,
        token: Optional[CancellationToken] = None,
    ) -> NodeProcessHandle:
        """
        Spawn the node and block until it is ready.

        Args:
            host: Bind address
            port: Bind port
            work_dir: Working directory for the node
            token: Cancellation token; the handle's terminate is registered with it

        Returns:
            Handle for the running node

        Raises:
            NodeStartFailed: If the node cannot be spawned or exits before it is ready
            NodeStartTimeout: If the readiness marker does not appear in time
            DeploymentCancelled: If the token is cancelled while waiting
        """
        handle = self.spawn(host, port, work_dir, token)
        self.wait_ready(handle, token)
        return handle

    def spawn(
        self,
        host: str,
        port: int,
        work_dir: Union[Path, str, None] = None,
        token: Optional[CancellationToken] = None,
    ) -> NodeProcessHandle:
        """Launch the node process without waiting for it."""
        command = self.build_command(host, port)
        self.state = NodeState.STARTING
        logger.info("Starting node: %s", " ".join(command))

        try:
            process = subprocess.Popen(
                command,
                cwd=str(work_dir) if work_dir is not None else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            self.state = NodeState.START_FAILED
            hint = NODE_INSTALL_HINT if isinstance(e, FileNotFoundError) else NODE_START_HINT
            raise NodeStartFailed(f"Failed to start node: {e}", hint=hint) from e

        handle = NodeProcessHandle(process)
        self.handle = handle
        if token is not None:
            token.add_callback(handle.terminate)

        threading.Thread(
            target=_pump_output,
            args=(process.stdout, handle.lines),
            name=f"node-output-{process.pid}",
            daemon=True,
        ).start()
        return handle

    def wait_ready(
        self, handle: NodeProcessHandle, token: Optional[CancellationToken] = None
    ) -> None:
        """
        Block until the readiness marker shows up in the node's output.

        The handle is terminated on any failure.

        Raises:
            NodeStartFailed: If the node exits before it is ready
            NodeStartTimeout: If the marker does not appear within the timeout
            DeploymentCancelled: If the token is cancelled while waiting
        """
        try:
            self._wait_for_marker(handle, token)
        except BaseException:
            handle.terminate()
            raise

        # Keep forwarding node output once it is up
        threading.Thread(
            target=self._drain,
            args=(handle,),
            name=f"node-log-{handle.pid}",
            daemon=True,
        ).start()

    def _wait_for_marker(
        self, handle: NodeProcessHandle, token: Optional[CancellationToken]
    ) -> None:
        deadline = time.monotonic() + self.timeout
        while True:
            if token is not None:
                token.raise_if_cancelled()

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self.state = NodeState.TIMED_OUT
                raise NodeStartTimeout(
                    f"Node did not report '{self.readiness_marker}' within {self.timeout:g}s",
                    hint=NODE_START_HINT,
                )

            try:
                line = handle.lines.get(timeout=min(remaining, _POLL_INTERVAL))
            except queue.Empty:
                continue

            if line is None:
                try:
                    exit_code = handle.process.wait(timeout=handle.stop_timeout)
                except subprocess.TimeoutExpired:
                    exit_code = None
                self.state = NodeState.START_FAILED
                tail = "\n".join(handle.output[-20:])
                raise NodeStartFailed(
                    f"Node exited with code {exit_code} before it was ready\n{tail}".rstrip(),
                    hint=NODE_START_HINT,
                )

            handle.output.append(line)
            logger.debug("node: %s", line)
            if self.readiness_marker in line:
                self.state = NodeState.READY
                logger.info("Node ready (pid %d)", handle.pid)
                return

    @staticmethod
    def _drain(handle: NodeProcessHandle) -> None:
        while True:
            line = handle.lines.get()
            if line is None:
                return
            logger.debug("node: %s", line)

    def terminate(self, handle: Optional[NodeProcessHandle]) -> None:
        """Terminate an owned node; a None or already-terminated handle is a no-op."""
        if handle is not None:
            handle.terminate()
