"""
Failure Notification

Delivers the context of a decision that failed to synchronize. Notifiers are
fire-and-forget: transport problems are logged, never raised into the sync.

Event Types (Redis Pub/Sub):
- run:started - Report generation started
- run:completed - Report generation completed
- decision:failed - A single decision failed to synchronize
"""

import json
import logging
import smtplib
import traceback
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from email.message import EmailMessage
from enum import Enum
from typing import Any, Protocol

import redis
from pydantic import BaseModel

from report_sync.config import Settings, get_settings
from report_sync.enums import MeetingType
from report_sync.keys import DecisionKey

logger = logging.getLogger(__name__)


class FailureContext(BaseModel):
    """Identity of the failed decision plus the captured error."""

    meeting_type: MeetingType
    meeting_number: int
    decision_point: int
    decision_number: int
    error_type: str
    message: str
    traceback: str = ""

    @classmethod
    def capture(cls, error: BaseException, decision: Any) -> "FailureContext":
        """Build a context for ``error`` raised while syncing ``decision``."""
        key = DecisionKey.of(decision)
        return cls(
            meeting_type=key.meeting_type,
            meeting_number=key.meeting_number,
            decision_point=key.point,
            decision_number=key.number,
            error_type=type(error).__name__,
            message=str(error),
            traceback="".join(traceback.format_exception(error)),
        )

    @property
    def decision_key(self) -> DecisionKey:
        return DecisionKey(
            self.meeting_type,
            self.meeting_number,
            self.decision_point,
            self.decision_number,
        )


class FailureNotifier(Protocol):
    """Receives per-decision synchronization failures."""

    def notify(self, error: BaseException, context: FailureContext) -> None: ...


class LoggingNotifier:
    """Logs failures; always active."""

    def notify(self, error: BaseException, context: FailureContext) -> None:
        logger.error(
            "Decision %s failed to synchronize: %s",
            context.decision_key,
            context.message,
        )


class MailNotifier:
    """Mails failures to the report-error address over SMTP."""

    SUBJECT = "Database error"

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build_message(self, context: FailureContext) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = self.SUBJECT
        message["From"] = self.settings.email_from
        message["To"] = self.settings.email_to_report_error
        message.set_content(
            "Hello database maintainers,\n"
            "\n"
            "I ran into an error while generating the report database:\n"
            "\n"
            f"{context.message}\n"
            "\n"
            f"This happened while processing decision {context.decision_key}.\n"
            "\n"
            "Kind regards,\n"
            "\n"
            "The database\n"
            "\n"
            "PS: extra information about the error:\n"
            "\n"
            f"{context.traceback}"
        )
        return message

    def notify(self, error: BaseException, context: FailureContext) -> None:
        if not self.settings.email_to_report_error:
            logger.warning("No report-error address configured, not mailing failure")
            return

        message = self.build_message(context)
        try:
            with smtplib.SMTP(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.smtp_timeout,
            ) as smtp:
                if self.settings.smtp_use_tls:
                    smtp.starttls()
                if self.settings.smtp_username:
                    smtp.login(self.settings.smtp_username, self.settings.smtp_password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Failed to mail failure of decision %s: %s", context.decision_key, e)


class EventType(str, Enum):
    """Event types for report generation."""

    RUN_STARTED = "run:started"
    RUN_COMPLETED = "run:completed"
    DECISION_FAILED = "decision:failed"


@dataclass
class SyncEvent:
    """Event published on the Redis channel."""

    event_type: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    # For decision events
    decision: str | None = None
    error_type: str | None = None
    message: str | None = None

    # For completion events
    meetings_synced: int | None = None
    decisions_synced: int | None = None
    failures_count: int | None = None
    duration_seconds: float | None = None

    def to_json(self) -> str:
        """Convert event to JSON string."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(data, default=str)


class EventEmitter:
    """
    Publishes report generation events to Redis Pub/Sub.

    Usage:
        with EventEmitter(settings) as emitter:
            emitter.emit_run_started()
            ...
            emitter.emit_run_completed(...)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: redis.Redis | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.channel = self.settings.events_channel
        self._client = client

    def __enter__(self) -> "EventEmitter":
        if self._client is None:
            self._client = redis.from_url(
                self.settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _publish(self, event: SyncEvent) -> None:
        if self._client is None:
            return
        try:
            self._client.publish(self.channel, event.to_json())
        except redis.RedisError as e:
            logger.warning("Failed to emit %s event: %s", event.event_type, e)

    def emit_run_started(self) -> None:
        self._publish(SyncEvent(event_type=EventType.RUN_STARTED.value))

    def emit_run_completed(
        self,
        meetings_synced: int,
        decisions_synced: int,
        failures_count: int,
        duration_seconds: float,
    ) -> None:
        self._publish(SyncEvent(
            event_type=EventType.RUN_COMPLETED.value,
            meetings_synced=meetings_synced,
            decisions_synced=decisions_synced,
            failures_count=failures_count,
            duration_seconds=duration_seconds,
        ))

    def notify(self, error: BaseException, context: FailureContext) -> None:
        self._publish(SyncEvent(
            event_type=EventType.DECISION_FAILED.value,
            decision=str(context.decision_key),
            error_type=context.error_type,
            message=context.message,
        ))


class CompositeNotifier:
    """Fans a failure out to several notifiers."""

    def __init__(self, notifiers: list[FailureNotifier]) -> None:
        self.notifiers = notifiers

    def notify(self, error: BaseException, context: FailureContext) -> None:
        for notifier in self.notifiers:
            notifier.notify(error, context)


def build_notifier(
    settings: Settings | None = None,
    events: EventEmitter | None = None,
) -> CompositeNotifier:
    """Assemble the notifiers enabled in the settings."""
    settings = settings or get_settings()
    notifiers: list[FailureNotifier] = [LoggingNotifier()]
    if settings.email_transport == "smtp":
        notifiers.append(MailNotifier(settings))
    if events is not None:
        notifiers.append(events)
    return CompositeNotifier(notifiers)
