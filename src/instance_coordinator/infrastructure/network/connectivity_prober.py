"""TCP handshake probe between a listener and a dialer."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from ipaddress import IPv4Address

from instance_coordinator.domain.errors import AcceptTimeoutError, BindError, DialError
from instance_coordinator.domain.models import ProbeResult, ProbeState
from instance_coordinator.domain.ports import ConnectivityChecker, SyncClient
from instance_coordinator.domain.roles import Role, RoleConvention

LISTENING_STATE = "listening"
DEFAULT_LISTENING_PORT = 1234

logger = logging.getLogger(__name__)


class _ProbeRun:
    """Transition log for one probe path."""

    def __init__(self, role: Role) -> None:
        self.role = role
        self.transitions: list[ProbeState] = [ProbeState.IDLE]

    def advance(self, state: ProbeState) -> None:
        logger.debug("%s probe: %s -> %s", self.role, self.transitions[-1], state)
        self.transitions.append(state)


class ConnectivityProber(ConnectivityChecker):
    """Runs the listener or dialer side of the connectivity check."""

    def __init__(
        self,
        sync_client: SyncClient,
        convention: RoleConvention | None = None,
        port: int = DEFAULT_LISTENING_PORT,
        accept_timeout_seconds: float = 300.0,
        dial_timeout_seconds: float = 10.0,
    ) -> None:
        if accept_timeout_seconds <= 0:
            raise ValueError("accept_timeout_seconds must be > 0.")
        if dial_timeout_seconds <= 0:
            raise ValueError("dial_timeout_seconds must be > 0.")
        self._sync_client = sync_client
        self._convention = convention or RoleConvention()
        self._port = port
        self._accept_timeout_seconds = accept_timeout_seconds
        self._dial_timeout_seconds = dial_timeout_seconds

    async def probe(self, role: Role, address: IPv4Address) -> ProbeResult:
        """Dispatch to the path for `role`."""

        if role is Role.LISTENER:
            return await self.listen(address)
        if role is Role.DIALER:
            return await self.dial(address)
        raise ValueError(f"No probe path for role '{role}'.")

    async def listen(self, address: IPv4Address) -> ProbeResult:
        """Bind, announce `listening`, and accept exactly one connection."""

        run = _ProbeRun(Role.LISTENER)
        accepted: asyncio.Future[IPv4Address | None] = (
            asyncio.get_running_loop().create_future()
        )

        async def on_connection(
            _reader: asyncio.StreamReader, writer: asyncio.StreamWriter
        ) -> None:
            peername = writer.get_extra_info("peername")
            if not accepted.done():
                accepted.set_result(IPv4Address(peername[0]) if peername else None)
            writer.close()
            with suppress(ConnectionError):
                await writer.wait_closed()

        try:
            server = await asyncio.start_server(on_connection, host=str(address), port=self._port)
        except OSError as exc:
            raise BindError(f"Failed to listen on {address}:{self._port}: {exc}") from exc
        run.advance(ProbeState.BOUND)
        logger.info("Listening for incoming connections on %s:%d.", address, self._port)

        try:
            await self._sync_client.signal(LISTENING_STATE)
            run.advance(ProbeState.AWAITING_PEER)
            try:
                peer = await asyncio.wait_for(accepted, timeout=self._accept_timeout_seconds)
            except TimeoutError as exc:
                raise AcceptTimeoutError(
                    f"No inbound connection on {address}:{self._port} within "
                    f"{self._accept_timeout_seconds:g}s."
                ) from exc
        finally:
            server.close()
            await server.wait_closed()

        run.advance(ProbeState.CONNECTED)
        logger.info("Established inbound TCP connection from %s.", peer)
        return ProbeResult(
            role=run.role,
            local_address=address,
            peer_address=peer,
            port=self._port,
            transitions=tuple(run.transitions),
        )

    async def dial(self, address: IPv4Address) -> ProbeResult:
        """Wait for a listener, then connect to it once from `address`."""

        run = _ProbeRun(Role.DIALER)
        await self._sync_client.barrier(LISTENING_STATE, 1)
        run.advance(ProbeState.WAITING_FOR_PEER)

        peer = self._convention.peer_address(address)
        run.advance(ProbeState.CONNECTING)
        logger.info("Dialing %s:%d.", peer, self._port)
        try:
            _reader, writer = await asyncio.wait_for(
                asyncio.open_connection(
                    host=str(peer),
                    port=self._port,
                    local_addr=(str(address), 0),
                ),
                timeout=self._dial_timeout_seconds,
            )
        except TimeoutError as exc:
            raise DialError(
                f"Connecting to {peer}:{self._port} timed out after "
                f"{self._dial_timeout_seconds:g}s."
            ) from exc
        except OSError as exc:
            raise DialError(f"Failed to connect to {peer}:{self._port}: {exc}") from exc
        writer.close()
        with suppress(ConnectionError):
            await writer.wait_closed()

        run.advance(ProbeState.CONNECTED)
        logger.info("Established outbound TCP connection to %s:%d.", peer, self._port)
        return ProbeResult(
            role=run.role,
            local_address=address,
            peer_address=peer,
            port=self._port,
            transitions=tuple(run.transitions),
        )


__all__ = ["ConnectivityProber", "DEFAULT_LISTENING_PORT", "LISTENING_STATE"]
