"""
Channel abstraction for multi-channel support

A channel turns a raw inbound payload (web widget, messaging webhook, ...)
into an IncomingMessage and delivers the OutgoingMessage back. To add a
channel, implement the Channel protocol and register an instance with
ChannelRegistry.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Protocol

ChannelType = Literal["web", "whatsapp", "instagram", "facebook", "sms"]


@dataclass
class IncomingMessage:
    text: str
    session_id: str
    channel_type: ChannelType
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OutgoingMessage:
    text: str
    session_id: str
    channel_type: ChannelType
    message_id: str
    tokens_used: Optional[int] = None
    response_time_ms: Optional[int] = None


class Channel(Protocol):
    """Inbound parsing and outbound delivery for one channel"""

    type: ChannelType

    async def parse_incoming(self, payload: Any) -> IncomingMessage:
        ...

    async def send_response(self, message: OutgoingMessage) -> None:
        ...


class ChannelRegistry:
    """Registry of channel implementations by type"""

    _channels: Dict[str, Channel] = {}

    @classmethod
    def register(cls, channel: Channel) -> None:
        cls._channels[channel.type] = channel

    @classmethod
    def get(cls, channel_type: str) -> Optional[Channel]:
        return cls._channels.get(channel_type)

    @classmethod
    def all(cls) -> List[Channel]:
        return list(cls._channels.values())
