"""
Notifications API Routes

Endpoints for the connection request workflow:
- Send a connection request
- Create a reminder
- List notifications / pending count
- Accept or reject a request
- List accepted connections
"""

import logging
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.api.dependencies import get_connection_service, get_current_account
from src.services.connection_service import ConnectionService
from src.tools.account_store import Account
from src.tools.notification_store import STATUS_PENDING

logger = logging.getLogger(__name__)

notifications_router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


# ==================== Pydantic Models ====================

class ConnectionRequestCreate(BaseModel):
    to_account_id: str
    message: str


class ReminderCreate(BaseModel):
    to_account_id: str
    message: str
    status: str = STATUS_PENDING


class RespondRequest(BaseModel):
    notification_id: str
    status: str = Field(..., description="accepted or rejected")


# ==================== Endpoints ====================

@notifications_router.post("/send", status_code=201)
async def send_connection_request(
    data: ConnectionRequestCreate,
    account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Send a connection request from the caller to another account"""
    notification = await connection_service.send_request(account.id, data.to_account_id, data.message)
    return {
        "success": True,
        "message": "Connection request sent successfully",
        "notification": notification.to_dict(),
    }


@notifications_router.post("", status_code=201)
async def create_reminder(
    data: ReminderCreate,
    account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Create a reminder notification with no sender"""
    notification = await connection_service.create_reminder(data.to_account_id, data.message, data.status)
    return {"success": True, "notification": notification.to_dict()}


@notifications_router.get("")
async def list_notifications(
    account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Notifications addressed to the caller, newest first"""
    notifications = await connection_service.list_for(account.id)
    return {
        "success": True,
        "data": [n.to_dict() for n in notifications],
        "count": len(notifications),
    }


@notifications_router.get("/pending-count")
async def get_pending_count(
    account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    count = await connection_service.pending_count_for(account.id)
    return {"success": True, "pending_count": count}


@notifications_router.post("/respond")
async def respond_to_request(
    data: RespondRequest,
    account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Accept or reject a pending request addressed to the caller"""
    await connection_service.respond(data.notification_id, data.status, responder_id=account.id)
    return {"success": True, "message": f"Request {data.status} successfully"}


@notifications_router.get("/connections")
async def list_connections(
    account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Accepted connections of the caller. Entries are not deduplicated."""
    connections = await connection_service.connections_for(account.id)
    return {"success": True, "data": connections, "count": len(connections)}
