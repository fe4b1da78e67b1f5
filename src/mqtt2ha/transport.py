"""MQTT connection used by entities.

A thin layer over ``aiomqtt.Client`` that gives entities callback-style
hooks (connected, message, error), turns broker failures into
``TransportError`` and keeps reconnecting in the background. Handlers
registered with ``on_connected`` run after every successful (re)connection,
which is what re-subscribes command topics after a reconnect.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import aiomqtt

from mqtt2ha.exceptions import TransportError
from mqtt2ha.logging_abstraction import get_logger
from mqtt2ha.utils import await_if_needed

if TYPE_CHECKING:
    from mqtt2ha.logging_abstraction import LoggerProtocol
    from mqtt2ha.settings import ResolvedConfig

logger = get_logger(__name__)

MessageHandler = Callable[[str, bytes], Awaitable[object] | object]
ConnectedHandler = Callable[[], Awaitable[object] | object]
ErrorHandler = Callable[[BaseException], Awaitable[object] | object]


class BusConnection:
    """One MQTT client connection with reconnect and callback dispatch."""

    lp: str = "mqtt:"

    def __init__(
        self,
        config: ResolvedConfig,
        client_id: str,
        will: aiomqtt.Will | None = None,
        log: LoggerProtocol | None = None,
    ) -> None:
        self.config = config
        self.client_id = client_id
        self.will = will
        self.logger: LoggerProtocol = log or logger
        self.client: aiomqtt.Client | None = None
        self._connected = False
        self._connected_event = asyncio.Event()
        self._stopping = False
        self._run_task: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[None]] = set()
        self._message_handlers: list[MessageHandler] = []
        self._connected_handlers: list[ConnectedHandler] = []
        self._error_handlers: list[ErrorHandler] = []

    @property
    def is_connected(self) -> bool:
        return self._connected

    def on_message(self, handler: MessageHandler) -> None:
        self._message_handlers.append(handler)

    def on_connected(self, handler: ConnectedHandler) -> None:
        self._connected_handlers.append(handler)

    def on_error(self, handler: ErrorHandler) -> None:
        self._error_handlers.append(handler)

    def _build_client(self) -> aiomqtt.Client:
        tls_params = None
        if self.config.use_tls:
            tls_params = aiomqtt.TLSParameters(
                ca_certs=self.config.tls_ca_cert,
                certfile=self.config.tls_certfile,
                keyfile=self.config.tls_key,
            )
        return aiomqtt.Client(
            hostname=self.config.host,
            port=self.config.port,
            username=self.config.username,
            password=self.config.password,
            identifier=self.client_id,
            will=self.will,
            tls_params=tls_params,
        )

    async def _report_error(self, error: BaseException) -> None:
        for handler in list(self._error_handlers):
            try:
                await await_if_needed(handler(error))
            except Exception:
                self.logger.exception("%s Error handler failed for %s", self.lp, self.client_id)

    def _mark_disconnected(self) -> None:
        self._connected = False
        self._connected_event.clear()

    async def connect(self) -> bool:
        """Make one connection attempt and fire the connected handlers."""
        lp = f"{self.lp}connect:"
        self._mark_disconnected()
        self.logger.debug(
            "%s Connecting %s to MQTT broker %s:%s...",
            lp,
            self.client_id,
            self.config.host,
            self.config.port,
        )
        self.client = self._build_client()
        try:
            _ = await self.client.__aenter__()
        except aiomqtt.MqttError as mqtt_err:
            # [code:134] Bad user name or password
            self.logger.warning(
                "%s Connection failed for %s: %s",
                lp,
                self.client_id,
                mqtt_err,
                extra={"client_id": self.client_id, "broker": f"{self.config.host}:{self.config.port}"},
            )
            await self._report_error(TransportError(str(mqtt_err)))
            return False

        self._connected = True
        self._connected_event.set()
        self.logger.info(
            "%s %s connected to MQTT broker %s:%s",
            lp,
            self.client_id,
            self.config.host,
            self.config.port,
        )
        for handler in list(self._connected_handlers):
            try:
                await await_if_needed(handler())
            except Exception as exc:
                self.logger.exception("%s Connected handler failed for %s", lp, self.client_id)
                await self._report_error(exc)
        return True

    async def _dispatch(self, topic: str, payload: bytes) -> None:
        for handler in list(self._message_handlers):
            try:
                await await_if_needed(handler(topic, payload))
            except Exception as exc:
                self.logger.exception(
                    "%s Message handler failed for topic %s",
                    self.lp,
                    topic,
                    extra={"client_id": self.client_id, "topic": topic},
                )
                await self._report_error(exc)

    async def receive(self) -> None:
        """Dispatch inbound messages until the connection drops."""
        assert self.client is not None, "client must be connected"
        async for message in self.client.messages:
            payload = message.payload
            if isinstance(payload, str):
                payload = payload.encode()
            elif not isinstance(payload, (bytes, bytearray)):
                payload = b"" if payload is None else str(payload).encode()
            await self._dispatch(message.topic.value, bytes(payload))

    async def run(self) -> None:
        """Connect, receive, and reconnect after a delay until stopped."""
        lp = f"{self.lp}run:"
        itr = 0
        while not self._stopping:
            itr += 1
            if await self.connect():
                if itr > 1:
                    self.logger.info("%s %s re-connected (attempt %s)", lp, self.client_id, itr)
                try:
                    await self.receive()
                except aiomqtt.MqttError as mqtt_err:
                    if self._stopping:
                        # stop() closed the client under the message iterator
                        self._mark_disconnected()
                        break
                    self.logger.warning(
                        "%s Connection lost for %s: %s",
                        lp,
                        self.client_id,
                        mqtt_err,
                        extra={"client_id": self.client_id, "broker": f"{self.config.host}:{self.config.port}"},
                    )
                    await self._report_error(TransportError(str(mqtt_err)))
                self._mark_disconnected()
            if self._stopping:
                break
            self.logger.info(
                "%s %s not connected, sleeping for %s seconds before re-trying...",
                lp,
                self.client_id,
                self.config.reconnect_delay,
            )
            await asyncio.sleep(self.config.reconnect_delay)

    async def start(self) -> None:
        """Run the connection loop in the background and wait for the first connection."""
        self._stopping = False
        if self._run_task is None or self._run_task.done():
            self._run_task = asyncio.create_task(self.run(), name=f"mqtt2ha-{self.client_id}")
        await self.wait_connected()

    async def wait_connected(self) -> None:
        _ = await self._connected_event.wait()

    async def stop(self) -> None:
        lp = f"{self.lp}stop:"
        self._stopping = True
        try:
            if self.client is not None and self._connected:
                self.logger.debug("%s Disconnecting %s from broker...", lp, self.client_id)
                await self.client.__aexit__(None, None, None)
        except aiomqtt.MqttError as mqtt_err:
            self.logger.warning("%s MQTT disconnect failed: %s", lp, mqtt_err)
        else:
            self.logger.info("%s %s disconnected from MQTT broker", lp, self.client_id)
        finally:
            self._mark_disconnected()
            if self._run_task is not None and not self._run_task.done():
                _ = self._run_task.cancel()

    async def publish(self, topic: str, payload: str | bytes, *, retain: bool = False, qos: int = 0) -> None:
        """Publish and wait for the transport; raises TransportError on failure."""
        if not self._connected or self.client is None:
            raise TransportError("not connected", topic)
        try:
            await self.client.publish(topic, payload, qos=qos, retain=retain)
        except aiomqtt.MqttError as mqtt_err:
            raise TransportError(str(mqtt_err), topic) from mqtt_err

    def publish_nowait(
        self,
        topic: str,
        payload: str | bytes,
        *,
        retain: bool = False,
        qos: int = 0,
    ) -> asyncio.Task[None]:
        """Schedule a publish without waiting for it.

        Failures are logged and reported to the error handlers; the returned
        task still raises them if awaited.
        """
        task = asyncio.get_running_loop().create_task(self.publish(topic, payload, retain=retain, qos=qos))
        self._pending.add(task)
        task.add_done_callback(self._publish_done)
        return task

    def _publish_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.warning(
                "%s Background publish failed for %s: %s",
                self.lp,
                self.client_id,
                error,
                extra={"client_id": self.client_id, "topic": getattr(error, "topic", None)},
            )
            report = asyncio.get_running_loop().create_task(self._report_error(error))
            self._pending.add(report)
            report.add_done_callback(self._pending.discard)

    async def subscribe(self, topic: str, qos: int = 1) -> None:
        if not self._connected or self.client is None:
            raise TransportError("not connected", topic)
        try:
            await self.client.subscribe(topic, qos=qos)
        except aiomqtt.MqttError as mqtt_err:
            raise TransportError(str(mqtt_err), topic) from mqtt_err


async def connect(
    config: ResolvedConfig,
    client_id: str,
    will: aiomqtt.Will | None = None,
) -> BusConnection:
    """Create a connection, start its loop and wait until it is connected."""
    connection = BusConnection(config, client_id, will=will)
    await connection.start()
    return connection
