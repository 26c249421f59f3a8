"""
Notification dispatcher.

Delivers one message to one recipient over a notification method:
`email`, `sms`, `in-app`, or `all` (every channel, independently).
A channel failure is reported in the result and never undoes another
channel's delivery. There is no retry and no deduplication: calling
dispatch twice sends twice.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from supabase import Client

from app.modules.notifications.providers import EmailProvider, SmsProvider

logger = logging.getLogger(__name__)

EMAIL = "email"
SMS = "sms"
IN_APP = "in-app"
ALL = "all"
CHANNELS = (EMAIL, SMS, IN_APP)
METHODS = CHANNELS + (ALL,)


def resolve_channels(method: str) -> List[str]:
    if method == ALL:
        return list(CHANNELS)
    if method in CHANNELS:
        return [method]
    raise ValueError(f"Unknown notification method: {method}")


@dataclass
class ChannelResult:
    channel: str
    success: bool
    error: Optional[str] = None
    reference: Optional[str] = None


@dataclass
class DispatchResult:
    method: str
    results: List[ChannelResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True when at least one channel delivered."""
        return any(r.success for r in self.results)

    @property
    def partial(self) -> bool:
        return self.success and not all(r.success for r in self.results)

    @property
    def failed_channels(self) -> List[str]:
        return [r.channel for r in self.results if not r.success]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "success": self.success,
            "partial": self.partial,
            "channels": [
                {"channel": r.channel, "success": r.success, "error": r.error}
                for r in self.results
            ],
        }


class NotificationDispatcher:
    def __init__(self, supabase: Client, email_provider: EmailProvider, sms_provider: SmsProvider):
        self.supabase = supabase
        self.email_provider = email_provider
        self.sms_provider = sms_provider

    def dispatch(
        self,
        recipient: Dict[str, Any],
        method: str,
        title: str,
        content: str,
        notification_type: str = "appointment",
        link: Optional[str] = None,
        sender_id: Optional[str] = None,
        html: Optional[str] = None,
    ) -> DispatchResult:
        """Send `content` to `recipient` (a users row) over every channel of `method`."""
        result = DispatchResult(method=method)
        for channel in resolve_channels(method):
            try:
                if channel == EMAIL:
                    reference = self.email_provider.send(recipient.get("email"), title, content, html)
                elif channel == SMS:
                    reference = self.sms_provider.send(recipient.get("phone"), content)
                else:
                    reference = self._create_in_app(recipient["id"], notification_type, title, content, link)
                result.results.append(ChannelResult(channel=channel, success=True, reference=reference))
            except Exception as e:
                logger.error(f"{channel} delivery to user {recipient.get('id')} failed: {e}")
                result.results.append(ChannelResult(channel=channel, success=False, error=str(e)))
                continue
            if channel != IN_APP and sender_id:
                self._record_history(channel, recipient["id"], sender_id, title, content)

        if result.partial:
            logger.warning(
                f"Partial delivery to user {recipient.get('id')} via {method}; failed: {result.failed_channels}"
            )
        return result

    def _create_in_app(
        self, recipient_id: str, notification_type: str, title: str, content: str, link: Optional[str]
    ) -> Optional[str]:
        insert_result = self.supabase.table("notifications").insert({
            "recipient_id": recipient_id,
            "type": notification_type,
            "title": title,
            "content": content,
            "link": link,
            "is_read": False,
            "delivery_method": IN_APP,
        }).execute()
        if not insert_result.data:
            raise RuntimeError("Failed to create notification")
        return insert_result.data[0].get("id")

    def _record_history(self, channel: str, recipient_id: str, sender_id: str, subject: str, content: str):
        try:
            self.supabase.table("communication_history").insert({
                "recipient_id": recipient_id,
                "sender_id": sender_id,
                "type": channel,
                "subject": subject if channel == EMAIL else None,
                "content": content,
                "status": "sent",
            }).execute()
        except Exception as e:
            logger.warning(f"Could not record {channel} history for user {recipient_id}: {e}")
