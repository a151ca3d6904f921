"""WebSocket consumer that relays ride events to riders and captains."""

import logging
from typing import Dict, Any, Set

from channels.generic.websocket import AsyncJsonWebsocketConsumer

logger = logging.getLogger(__name__)

RIDE_EVENTS = ("ride_accepted", "ride_started", "ride_completed", "ride_cancelled")


class RideEventsConsumer(AsyncJsonWebsocketConsumer):
    """
    Joins the personal groups for the connected user:
        - user_<id> for every user
        - captain_<id> for captains
    and forwards each ride event as JSON.
    """

    async def connect(self):
        self.user = self.scope["user"]

        if self.user.is_anonymous:
            await self.close()
            return

        self.user_id = self.user.id
        self.role = getattr(self.user, "role", None)
        self.joined_groups: Set[str] = set()

        await self._join_group(f"user_{self.user_id}")
        if self.role == "captain":
            await self._join_group(f"captain_{self.user_id}")

        await self.accept()
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "role": self.role,
        })

    async def disconnect(self, close_code):
        """Leave all joined groups on disconnect."""
        for group in list(getattr(self, "joined_groups", ())):
            await self.channel_layer.group_discard(group, self.channel_name)
        logger.debug("User %s disconnected (%s)", getattr(self, "user_id", None), close_code)

    async def receive_json(self, data: Dict[str, Any]):
        if data.get("type") == "ping":
            await self.send_json({"type": "pong"})
        else:
            await self.send_json({"type": "error", "message": "This socket only delivers ride events"})

    async def _join_group(self, group_name: str):
        await self.channel_layer.group_add(group_name, self.channel_name)
        self.joined_groups.add(group_name)

    # ---------------------- Ride Event Handlers ----------------------

    async def _relay(self, event: Dict[str, Any]):
        await self.send_json({
            "type": event["type"],
            "ride_code": event.get("ride_code"),
            "status": event.get("status"),
            "message": event.get("message", ""),
        })

    async def ride_accepted(self, event):
        await self._relay(event)

    async def ride_started(self, event):
        await self._relay(event)

    async def ride_completed(self, event):
        await self._relay(event)

    async def ride_cancelled(self, event):
        await self._relay(event)
