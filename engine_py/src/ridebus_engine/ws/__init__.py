"""
WebSocket event parsing and connection handling for Ride the Bus.
"""

from .events import EventType, OutboundEventType, parse_inbound_event

__all__ = ["EventType", "OutboundEventType", "parse_inbound_event"]
