import asyncio
import uuid
from typing import Any, Dict, Mapping, Optional

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from logging_config import get_logger
from schemas.chat import Room
from schemas.events import OutboundEvent, ServerFrame, parse_client_event
from services.engine import ChatEngine

logger = get_logger(__name__)

UNKNOWN_ADDRESS = "Unknown IP"
IPV4_MAPPED_PREFIX = "::ffff:"

# Sentinel that tells a writer task to stop
_CLOSE = object()


def resolve_origin_address(headers: Mapping[str, str], peer_host: Optional[str]) -> str:
    """Best guess at the client's address behind reverse proxies."""
    forwarded_for = headers.get("x-forwarded-for")
    real_ip = headers.get("x-real-ip")
    if forwarded_for:
        address = forwarded_for.split(",")[0].strip()
    elif real_ip:
        address = real_ip.strip()
    else:
        address = peer_host

    if address and IPV4_MAPPED_PREFIX in address:
        address = address.replace(IPV4_MAPPED_PREFIX, "")
    return address or UNKNOWN_ADDRESS


def encode_frame(event: OutboundEvent, data: Any = None) -> str:
    return ServerFrame(event=event, data=data).model_dump_json()


class ConnectionGateway:
    """Push channel over WebSockets.

    Emits never await: frames go onto a per-connection queue that a writer
    task drains, so the engine can call ``emit_*`` from inside an event
    handler without yielding to other connections.
    """

    def __init__(self):
        self.engine: Optional[ChatEngine] = None
        # Format: {connection_id: outbound frame queue}
        self._queues: Dict[str, asyncio.Queue] = {}

    def bind(self, engine: ChatEngine):
        self.engine = engine

    def connection_count(self) -> int:
        return len(self._queues)

    # -- Emitter ---------------------------------------------------------

    def emit_to_one(self, connection_id: str, event: OutboundEvent, data: Any = None):
        queue = self._queues.get(connection_id)
        if queue is None:
            logger.debug(f"Dropping {event.value} for unknown connection {connection_id}")
            return
        queue.put_nowait(encode_frame(event, data))

    def emit_to_room(self, room: Room, event: OutboundEvent, data: Any = None, exclude: Optional[str] = None):
        frame = encode_frame(event, data)
        for member in room.members:
            if member != exclude and member in self._queues:
                self._queues[member].put_nowait(frame)

    def emit_to_all(self, event: OutboundEvent, data: Any = None):
        frame = encode_frame(event, data)
        for queue in self._queues.values():
            queue.put_nowait(frame)

    # -- connection handling ---------------------------------------------

    async def serve(self, websocket: WebSocket):
        """Run one connection from accept to teardown."""
        if self.engine is None:
            raise RuntimeError("ConnectionGateway is not bound to an engine")

        await websocket.accept()
        connection_id = str(uuid.uuid4())
        origin = resolve_origin_address(websocket.headers, websocket.client.host if websocket.client else None)
        logger.info(f"New connection: {connection_id}")

        queue: asyncio.Queue = asyncio.Queue()
        self._queues[connection_id] = queue
        writer = asyncio.create_task(self._write(connection_id, websocket, queue))

        try:
            self.engine.connect(connection_id, origin)
            while True:
                raw = await websocket.receive_text()
                event = parse_client_event(raw)
                if event is None:
                    logger.debug(f"Ignoring malformed frame from {connection_id}")
                    continue
                self.engine.dispatch(connection_id, event)
        except WebSocketDisconnect:
            logger.debug(f"WebSocket disconnected normally for connection {connection_id}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        finally:
            self.engine.disconnect(connection_id)
            self._queues.pop(connection_id, None)
            queue.put_nowait(_CLOSE)
            await writer
            if websocket.client_state != WebSocketState.DISCONNECTED and websocket.application_state != WebSocketState.DISCONNECTED:
                try:
                    await websocket.close()
                except RuntimeError as e:
                    logger.debug(f"Error closing WebSocket: {e}")

    async def _write(self, connection_id: str, websocket: WebSocket, queue: asyncio.Queue):
        while True:
            frame = await queue.get()
            if frame is _CLOSE:
                return
            try:
                await websocket.send_text(frame)
            except Exception as e:
                # Receive loop notices the dead socket and tears down
                logger.warning(f"Error sending to connection {connection_id}: {e}")
                return
