from fastapi import APIRouter, HTTPException, Request
from typing import List

from schemas.rooms import RoomDetailsResponse, RoomSummary
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/", response_model=List[RoomSummary])
async def list_rooms(request: Request):
    registry = request.app.state.registry
    rooms = registry.rooms()
    logger.debug(f"Room list request: {len(rooms)} rooms")
    return [
        RoomSummary(
            room_id=room.room_id,
            members_count=len(room.members),
            total=room.total,
            has_question=room.question is not None,
        )
        for room in rooms
    ]


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Current snapshot of a room, the same data a STATE frame carries.

    Never creates the room; unknown ids are a 404.
    """
    room = request.app.state.registry.get(room_id)
    if not room:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    snapshot = room.snapshot()
    return RoomDetailsResponse(
        room_id=room_id,
        question=snapshot["question"],
        counts=snapshot["counts"],
        total=snapshot["total"],
        members_count=len(room.members),
    )
