"""
Client-side reconciliation of a polled ticket message feed.

Chat clients poll the messages endpoint every few seconds and must merge
the response into what they already show: their own messages may be on
screen before the server has echoed them back, and the same message must
never be listed twice. MessageReconciler holds that local state and
TicketPoller drives it against the API.
"""
import logging
import threading
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

import requests
from django.utils.dateparse import parse_datetime

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 3.0
PENDING_TTL_SECONDS = 5.0
CONTENT_MATCH_WINDOW = timedelta(seconds=10)
REQUEST_TIMEOUT = 10


@dataclass
class ChatMessage:
    id: str
    text: str
    sender_name: str
    created_at: datetime
    status: str = 'sent'
    sender_role: str = ''
    channel_type: str = ''
    extra: Dict = field(default_factory=dict)

    @property
    def content_key(self) -> str:
        return f"{self.text}-{self.sender_name}"

    @classmethod
    def from_api(cls, data: Dict) -> 'ChatMessage':
        """Build a message from one item of the ticket messages endpoint"""
        created_at = data.get('created_at')
        if isinstance(created_at, str):
            created_at = parse_datetime(created_at)
        return cls(
            id=str(data['id']),
            text=data.get('message_text') or data.get('text') or '',
            sender_name=data.get('sender_name') or '',
            created_at=created_at,
            status='sent',
            sender_role=data.get('sender_role') or '',
            channel_type=data.get('channel_type') or '',
            extra={k: v for k, v in data.items() if k in ('file_url', 'file_name', 'message_type')},
        )


class MessageReconciler:
    """
    Local message list kept consistent with a polled server feed.

    Messages the local user just sent are remembered by id and content key
    for a short time, so the poll that echoes them back does not add them
    a second time.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 pending_ttl: float = PENDING_TTL_SECONDS,
                 content_window: timedelta = CONTENT_MATCH_WINDOW):
        self.messages: List[ChatMessage] = []
        self.last_message_id: Optional[str] = None
        self._pending: Dict[str, float] = {}
        self._clock = clock
        self._pending_ttl = pending_ttl
        self._content_window = content_window

    def load(self, fetched: Iterable[ChatMessage]):
        """Replace local state with a full server snapshot"""
        self.messages = [replace(m, status='sent') for m in fetched]
        self.last_message_id = self.messages[-1].id if self.messages else None

    def add_local(self, message: ChatMessage):
        """Show a message the local user sent and shield it from being re-added"""
        self.messages.append(message)
        expires = self._clock() + self._pending_ttl
        self._pending[message.id] = expires
        self._pending[message.content_key] = expires
        self.last_message_id = message.id

    def is_pending(self, key: str) -> bool:
        self._expire_pending()
        return key in self._pending

    def _expire_pending(self):
        now = self._clock()
        for key in [k for k, expires in self._pending.items() if expires <= now]:
            del self._pending[key]

    def _within_window(self, a: ChatMessage, b: ChatMessage) -> bool:
        if a.created_at is None or b.created_at is None:
            return False
        return abs(a.created_at - b.created_at) < self._content_window

    def merge(self, fetched: List[ChatMessage]) -> List[ChatMessage]:
        """
        Fold a polled feed into the local list.

        Returns the messages that were appended. Nothing changes when the
        feed is empty or ends with the message already seen last.
        """
        if not fetched:
            return []
        last_fetched_id = fetched[-1].id
        if last_fetched_id == self.last_message_id:
            return []

        self._expire_pending()
        known_ids = {m.id for m in self.messages}
        known_content = {m.content_key for m in self.messages}
        fetched_by_id = {m.id: m for m in fetched}

        updated = []
        for existing in self.messages:
            server = fetched_by_id.get(existing.id)
            if server is None and existing.status == 'sending':
                server = next(
                    (m for m in fetched
                     if m.text == existing.text and m.sender_name == existing.sender_name
                     and self._within_window(m, existing)),
                    None
                )
            updated.append(replace(server, status='sent') if server else existing)

        added = []
        for message in fetched:
            if message.id in known_ids or message.content_key in known_content:
                continue
            if message.id in self._pending or message.content_key in self._pending:
                continue
            added.append(replace(message, status='sent'))

        self.messages = updated + added
        self.last_message_id = last_fetched_id
        return added

    def reconnect(self, fetched: List[ChatMessage]):
        """Union local and server messages by id, ordered by creation time"""
        by_id = {m.id: m for m in self.messages}
        for message in fetched:
            by_id[message.id] = message
        self.messages = sorted(
            by_id.values(),
            key=lambda m: m.created_at.timestamp() if m.created_at else 0.0
        )
        if fetched:
            self.last_message_id = fetched[-1].id


class TicketPoller:
    """Poll a ticket's message feed and merge it into a reconciler"""

    def __init__(self, base_url: str, ticket_id: int, token: str,
                 reconciler: Optional[MessageReconciler] = None,
                 interval: float = POLL_INTERVAL_SECONDS,
                 channel: Optional[str] = None,
                 on_new: Optional[Callable[[List[ChatMessage]], None]] = None,
                 session: Optional[requests.Session] = None):
        self.url = f"{base_url.rstrip('/')}/api/v1/tickets/{ticket_id}/messages/"
        self.ticket_id = ticket_id
        self.reconciler = reconciler or MessageReconciler()
        self.interval = interval
        self.channel = channel
        self.on_new = on_new
        self.session = session or requests.Session()
        self.session.headers['Authorization'] = f"Bearer {token}"
        self._stop = threading.Event()

    def fetch(self) -> List[ChatMessage]:
        params = {'channel': self.channel} if self.channel else None
        response = self.session.get(self.url, params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return [ChatMessage.from_api(item) for item in response.json().get('messages', [])]

    def poll_once(self) -> List[ChatMessage]:
        """Fetch and merge once; request failures are logged and yield no messages"""
        try:
            fetched = self.fetch()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Error polling messages for ticket {self.ticket_id}: {str(e)}")
            return []

        added = self.reconciler.merge(fetched)
        if added and self.on_new:
            self.on_new(added)
        return added

    def reconnect(self):
        try:
            fetched = self.fetch()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Error reconnecting to ticket {self.ticket_id}: {str(e)}")
            return
        self.reconciler.reconnect(fetched)

    def run(self, max_polls: Optional[int] = None):
        """Poll until stop() is called or max_polls polls have run"""
        polls = 0
        self._stop.clear()
        while not self._stop.is_set():
            self.poll_once()
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break
            self._stop.wait(self.interval)

    def stop(self):
        self._stop.set()
