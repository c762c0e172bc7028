import json

from channels.generic.websocket import AsyncWebsocketConsumer

from clinic.services.booking import schedule_group


class ScheduleUpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes ``schedule.booked`` events for one session to its watchers."""

    async def connect(self):
        self.schedule_id = int(self.scope["url_route"]["kwargs"]["schedule_id"])
        self.group_name = schedule_group(self.schedule_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "scheduleId": self.schedule_id}))

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def schedule_booked(self, event):
        # event: {"type": "schedule.booked", "scheduleId": int, "serial": int, "bookedCount": int}
        await self.send(json.dumps(event))
