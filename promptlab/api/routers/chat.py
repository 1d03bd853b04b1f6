import json
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from promptlab.agents.factory import all_agent_metadata, available_agent_types
from promptlab.api.deps import get_chat_service
from promptlab.core import config
from promptlab.providers.base import StreamCallbacks
from promptlab.schemas.chat import InvalidChatRequest, StreamFrame, parse_chat_request
from promptlab.services.chat_service import AgentChatService

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = logging.getLogger(__name__)


def _truncate(data: Any, limit: int = 500) -> str:
    try:
        text = json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(data)
    return text if len(text) <= limit else text[:limit] + "..."


def _client_ip(conn) -> str:
    return conn.client.host if conn.client else "0.0.0.0"


@router.post("")
async def send_message(
    request: Request,
    payload: Any = Body(default=None),
    service: AgentChatService = Depends(get_chat_service),
):
    client_ip = _client_ip(request)
    try:
        req = parse_chat_request(payload)
    except InvalidChatRequest as e:
        return JSONResponse(status_code=400, content={"error": str(e), "message": str(e)})

    provider, model, agent_type = service.resolve(req)
    logger.debug(
        "processing chat request: ip=%s provider=%s model=%s agent=%s messages=%d",
        client_ip, provider, model, agent_type, len(req.messages),
    )
    try:
        response = await service.process_chat(req)
    except Exception as e:
        logger.error(
            "chat request failed: ip=%s provider=%s model=%s agent=%s error=%s request=%s",
            client_ip, provider, model, agent_type, e, _truncate(payload),
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process chat request", "message": str(e)},
        )

    logger.info(
        "chat request successful: ip=%s provider=%s model=%s agent=%s",
        client_ip, provider, model, agent_type,
    )
    return response.model_dump(by_alias=True)


@router.get("/config")
def get_provider_config() -> dict:
    cfg = config.provider_config()
    cfg["agents"] = {"available": available_agent_types(), "metadata": all_agent_metadata()}
    return cfg


async def _send(websocket: WebSocket, frame: StreamFrame) -> None:
    await websocket.send_text(json.dumps(frame.dump(), ensure_ascii=False))


async def handle_frame(websocket: WebSocket, raw: str, service: AgentChatService, client_ip: str) -> None:
    """Answer one client frame. Every failure is reported as a single error frame."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        await _send(websocket, StreamFrame(type="error", error=f"Invalid JSON: {e}"))
        return

    provider, model, agent_type = config.DEFAULT_PROVIDER, "", "chat"
    try:
        req = parse_chat_request(data)
        provider, model, agent_type = service.resolve(req)
        # only an absent key defaults; an explicit false is kept as-is
        stream = req.stream if "stream" in data else False

        logger.debug(
            "websocket message received: ip=%s provider=%s model=%s agent=%s stream=%s messages=%d",
            client_ip, provider, model, agent_type, stream, len(req.messages),
        )
        await _send(websocket, StreamFrame(type="start"))

        if stream:
            async def on_chunk(content: str) -> None:
                await _send(websocket, StreamFrame(type="stream", content=content))

            response = await service.process_streaming_chat(req, StreamCallbacks(on_response_chunk=on_chunk))
        else:
            response = await service.process_chat(req)
            await _send(websocket, StreamFrame(type="stream", content=response.message))

        await _send(websocket, StreamFrame(type="end", content=response.message, agent_type=response.agent_type))
        logger.info(
            "websocket response completed: ip=%s provider=%s model=%s agent=%s stream=%s",
            client_ip, provider, model, agent_type, stream,
        )
    except WebSocketDisconnect:
        raise
    except Exception as e:
        logger.error(
            "websocket chat request failed: ip=%s provider=%s model=%s agent=%s error=%s request=%s",
            client_ip, provider, model, agent_type, e, _truncate(data),
        )
        await _send(websocket, StreamFrame(type="error", error=str(e) or "Failed to process chat request"))


@router.websocket("/ws")
async def chat_ws(websocket: WebSocket, service: AgentChatService = Depends(get_chat_service)):
    await websocket.accept()
    client_ip = _client_ip(websocket)
    logger.info("websocket client connected: ip=%s user_agent=%s", client_ip, websocket.headers.get("user-agent"))
    try:
        await _send(websocket, StreamFrame(type="info", message="Chat WebSocket connection established"))
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")
            await handle_frame(websocket, raw, service, client_ip)
    except WebSocketDisconnect as e:
        logger.info("websocket connection closed: ip=%s code=%s", client_ip, e.code)
    except Exception as e:
        # transport failure; the client is expected to reconnect
        logger.error("websocket error: ip=%s error=%s", client_ip, e)
