"""
Web Channel - Messages from the browser chat widget

Requests arrive over the REST API and the reply goes back in the HTTP
response, so delivery only needs to be logged.
"""

from typing import Any

from loguru import logger

from support_chat.channels.base import ChannelRegistry, IncomingMessage, OutgoingMessage


class WebChannel:
    type = "web"

    async def parse_incoming(self, payload: Any) -> IncomingMessage:
        """Accept a validated ChatMessageRequest or a plain dict"""
        if isinstance(payload, dict):
            text, session_id = payload["message"], payload["sessionId"]
        else:
            text, session_id = payload.message, payload.session_id
        return IncomingMessage(text=text, session_id=session_id, channel_type="web")

    async def send_response(self, message: OutgoingMessage) -> None:
        logger.info(f"[WebChannel] Response {message.message_id} sent to session {message.session_id}")


web_channel = WebChannel()
ChannelRegistry.register(web_channel)
