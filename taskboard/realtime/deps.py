from fastapi import Request

from taskboard.realtime.notifications import NotificationCenter
from taskboard.realtime.presence import PresenceTracker

def get_notifications(request: Request) -> NotificationCenter:
    return request.app.state.notifications

def get_presence(request: Request) -> PresenceTracker:
    return request.app.state.presence
