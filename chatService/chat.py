import random
import string
import time
from typing import Any, Dict, List, Optional


def generate_chat_message_id(room_name: str, sender_identity: Optional[str]) -> str:
    """Simple unique-ish id: <room>-<sender>-<epoch ms>-<6 random chars>."""
    rand = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{room_name}-{sender_identity or 'anon'}-{int(time.time() * 1000)}-{rand}"


def normalize_attachments(attachments: Any) -> List[Dict[str, str]]:
    """Keep dict attachments, coerce url/type/name to strings, drop those without a url."""
    if not isinstance(attachments, list):
        return []
    normalized = []
    for attachment in attachments:
        if not attachment or not isinstance(attachment, dict):
            continue
        item = {
            "url": str(attachment.get("url") or ""),
            "type": str(attachment.get("type") or ""),
            "name": str(attachment.get("name") or ""),
        }
        if item["url"]:
            normalized.append(item)
    return normalized


class ChatHistory:
    """In-memory chat log per room. Lost on restart."""

    def __init__(self):
        self._messages: Dict[str, List[Dict[str, Any]]] = {}

    def history(self, room_name: str) -> List[Dict[str, Any]]:
        return list(self._messages.get(room_name, []))

    def append(
        self,
        room_name: str,
        sender_identity: str,
        sender_name: str,
        text: Optional[str] = None,
        attachments: Any = None,
    ) -> Dict[str, Any]:
        message = {
            "id": generate_chat_message_id(room_name, sender_identity),
            "roomName": room_name,
            "senderIdentity": sender_identity,
            "senderName": sender_name,
            "text": text or "",
            "timestamp": int(time.time() * 1000),
            "attachments": normalize_attachments(attachments),
        }
        self._messages.setdefault(room_name, []).append(message)
        return message
