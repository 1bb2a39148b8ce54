# backend/routes/ws.py
import asyncio
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.websockets import WebSocketState

from database import get_db
from services.notifications import broker
from utils.broker import Subscription, chef_topic, user_topic
from utils.permissions import is_chef
from utils.tokenJWT import user_from_token

router = APIRouter(tags=["Notifications"])
logger = logging.getLogger(__name__)

# Application close code for a missing or invalid token
WS_UNAUTHENTICATED = 4001
# Server-side failure while streaming
WS_INTERNAL_ERROR = 1011


async def _pump(websocket: WebSocket, subscription: Subscription):
    while True:
        message = await subscription.get()
        await websocket.send_json(message)


async def _drain(websocket: WebSocket):
    # Client messages are ignored; receiving only detects the disconnect
    while True:
        await websocket.receive_text()


def _authenticate(token: Optional[str], db: Session):
    if not token:
        return None
    try:
        return user_from_token(token, db)
    finally:
        # Only the user row is needed; the connection goes back to the pool before streaming
        db.close()


# Live order events: customers get their own order updates, chefs also get incoming orders
@router.websocket("/ws/orders")
async def order_stream(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    user = await run_in_threadpool(_authenticate, token, db)
    if user is None:
        logger.info("Rejected order stream connection without a valid token")
        await websocket.close(code=WS_UNAUTHENTICATED)
        return

    await websocket.accept()
    topics = [user_topic(user.id)]
    if is_chef(user):
        topics.append(chef_topic(user.id))
    subscription = broker.subscribe(*topics)
    logger.info("User %s connected to %s", user.id, ", ".join(topics))

    tasks = []
    try:
        await websocket.send_json({"type": "CONNECTED", "topics": topics})
        tasks = [asyncio.create_task(_pump(websocket, subscription)), asyncio.create_task(_drain(websocket))]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if isinstance(error, WebSocketDisconnect):
                logger.info("User %s disconnected from order stream", user.id)
            elif error is not None:
                logger.error("Order stream for user %s failed: %r", user.id, error)
                if websocket.application_state == WebSocketState.CONNECTED:
                    await websocket.close(code=WS_INTERNAL_ERROR)
    finally:
        for task in tasks:
            task.cancel()
        broker.unsubscribe(subscription)
