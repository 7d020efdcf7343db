"""Customer chat: Sari answers first, the seller takes over on handoff"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List

from ..database import CHATS, utcnow
from ..models import ChatMessage
from ..utils.notifications import NotificationManager
from .client import SariClient
from .parsing import Parsed, parse_chat
from .prompts import build_chat_prompt

logger = logging.getLogger(__name__)

AI_SENDER = 'Sari (AI)'
HANDOFF_REPLY = "Connecting you to the seller..."


@dataclass
class ChatReply:
    reply: str
    handoff: bool


class ChatService:
    """Guest and seller messages plus the AI front desk"""

    def __init__(self, db, client: SariClient, notifications: NotificationManager):
        self.db = db
        self.client = client
        self.notifications = notifications

    async def _insert(self, message: ChatMessage) -> ChatMessage:
        result = await self.db[CHATS].insert_one(message.to_doc())
        message.id = str(result.inserted_id)
        return message

    async def send_user_message(self, store_id: str, guest_id: str, content: str) -> ChatMessage:
        msg = await self._insert(ChatMessage(store_id=store_id, guest_id=guest_id, sender='User', content=content))
        await self.notifications.chat_notification(store_id)
        return msg

    async def reply_as_seller(self, store_id: str, guest_id: str, content: str) -> ChatMessage:
        return await self._insert(ChatMessage(store_id=store_id, guest_id=guest_id, sender='Seller', content=content))

    async def conversation(self, store_id: str, guest_id: str) -> List[ChatMessage]:
        cursor = self.db[CHATS].find({'store_id': store_id, 'guest_id': guest_id}).sort('timestamp', 1)
        return [ChatMessage.from_doc(d) for d in await cursor.to_list(length=None)]

    async def store_messages(self, store_id: str) -> List[ChatMessage]:
        cursor = self.db[CHATS].find({'store_id': store_id}).sort('timestamp', 1)
        return [ChatMessage.from_doc(d) for d in await cursor.to_list(length=None)]

    async def ai_chat(self, store_id: str, guest_id: str, user_input: str) -> ChatReply:
        """Let Sari answer; hand the conversation to the seller when asked to or when the reply is unreadable"""
        result = parse_chat(await self.client.generate(build_chat_prompt(user_input)))
        if isinstance(result, Parsed):
            reply = ChatReply(reply=result.payload.reply, handoff=result.payload.handoff)
        else:
            logger.info(f"Unparseable chat reply for store {store_id}; handing off to seller")
            reply = ChatReply(reply=HANDOFF_REPLY, handoff=True)

        if reply.handoff:
            now = utcnow()
            await self._insert(ChatMessage(store_id=store_id, guest_id=guest_id, sender='User',
                                           content=user_input, timestamp=now))
            await self._insert(ChatMessage(store_id=store_id, guest_id=guest_id, sender=AI_SENDER,
                                           content=reply.reply, timestamp=now + timedelta(milliseconds=500)))
            await self.notifications.chat_notification(store_id, "Customer requested human assistance.")
        return reply
