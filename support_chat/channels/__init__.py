"""
Channels - Inbound/outbound adapters per messaging surface
"""

from support_chat.channels.base import (
    Channel,
    ChannelRegistry,
    ChannelType,
    IncomingMessage,
    OutgoingMessage,
)
from support_chat.channels.web import WebChannel, web_channel

__all__ = [
    "Channel",
    "ChannelRegistry",
    "ChannelType",
    "IncomingMessage",
    "OutgoingMessage",
    "WebChannel",
    "web_channel",
]
