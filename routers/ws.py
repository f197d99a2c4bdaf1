from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import uuid

from constants import WS_PATH
from logging_config import get_logger

logger = get_logger(__name__)

ws_router = APIRouter(tags=["ws"])


@ws_router.websocket(WS_PATH)
async def websocket_endpoint(websocket: WebSocket):
    """Poll WebSocket.

    Every text (or UTF-8 binary) frame is handed to the dispatcher as-is; the
    dispatcher answers through the send function registered for this connection.
    """
    dispatcher = websocket.app.state.dispatcher
    connection_id = str(uuid.uuid4())

    await websocket.accept()
    logger.info(f"WebSocket connection accepted: {connection_id}")
    dispatcher.connect(connection_id, websocket.send_text)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected normally for connection {connection_id}")
                break
            data = message.get("text")
            if data is None:
                data = message.get("bytes") or b""
            await dispatcher.handle(connection_id, data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for connection {connection_id}")
    except Exception as e:
        logger.error(f"Error handling WebSocket connection {connection_id}: {e}", exc_info=True)
        try:
            await websocket.close(code=1011)
        except Exception as close_error:
            logger.debug(f"Error closing WebSocket: {close_error}")
    finally:
        await dispatcher.disconnect(connection_id)
