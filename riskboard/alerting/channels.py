"""
Action Channels: Deliver fired rule actions.

Each channel is independent and fault-tolerant:
- Webhook: POST JSON to the configured URL (private hosts rejected)
- Chat: Slack-compatible incoming-webhook message
- Email: Plain-text message via SMTP (async)
- SMS: POST to an HTTP SMS gateway
- Internal alert: Structured record handed to the host application

The ActionDispatcher routes each request to its channel, bounds it with a
timeout, and turns any failure into a failed ActionResult. It never raises
and never retries within a firing.
"""

import asyncio
import ipaddress
import uuid
from collections import deque
from email.mime.text import MIMEText
from typing import Callable, Iterable, Optional, Protocol
from urllib.parse import urlparse

import aiosmtplib
import httpx
import structlog

from riskboard.alerting.schemas import (
    ActionResult,
    ActionType,
    DispatchRequest,
    InternalAlert,
)
from riskboard.config import Settings, settings as default_settings

logger = structlog.get_logger(__name__)

DEFAULT_HTTP_TIMEOUT: float = 10.0

_PRIVATE_RANGES = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


def validate_outbound_url(url: str) -> tuple[bool, str]:
    """
    Check a channel URL before posting to it.

    DENY: non-HTTP(S) schemes, embedded credentials, missing host,
    localhost and private/link-local IP literals.

    Returns:
        (is_valid, reason)
    """
    if not url or not isinstance(url, str):
        return False, "URL is empty or invalid"

    try:
        parsed = urlparse(url)
    except ValueError:
        return False, "Malformed URL"

    if parsed.scheme not in ("https", "http"):
        return False, f"Invalid scheme: {parsed.scheme}. Only HTTP(S) allowed."
    if parsed.username or parsed.password:
        return False, "URLs with embedded credentials are not allowed"

    hostname = parsed.hostname
    if not hostname:
        return False, "No hostname in URL"
    if hostname.lower() in {"localhost", "127.0.0.1", "::1", "0.0.0.0"}:
        return False, f"Localhost ({hostname}) is not allowed"

    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return True, ""  # Hostname, not an IP literal
    for network in _PRIVATE_RANGES:
        if ip in network:
            return False, f"Private/reserved IP address: {hostname}"
    return True, ""


class ChannelDispatcher(Protocol):
    """Protocol for action channel dispatchers."""

    async def dispatch(self, request: DispatchRequest) -> dict:
        """
        Deliver one action.

        Returns:
            dict with delivery result: {"success": bool, "detail": str}
        """
        ...


class _HttpChannel:
    """Shared POST helper for HTTP-based channels."""

    channel_name = "http"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    async def _post(
        self,
        request: DispatchRequest,
        url: str,
        payload: dict,
        headers: Optional[dict] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> dict:
        is_valid, reason = validate_outbound_url(url)
        if not is_valid:
            logger.warning(
                "channel_url_blocked",
                channel=self.channel_name,
                url=url,
                reason=reason,
            )
            return {"success": False, "detail": f"URL blocked: {reason}"}

        all_headers = {"Content-Type": "application/json"}
        all_headers.update(headers or {})

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=all_headers)
        except httpx.HTTPError as e:
            logger.error(
                "channel_http_error",
                channel=self.channel_name,
                action_id=request.action_id,
                error=str(e),
            )
            return {"success": False, "detail": str(e) or type(e).__name__}

        if response.status_code >= 400:
            logger.warning(
                "channel_http_rejected",
                channel=self.channel_name,
                action_id=request.action_id,
                status=response.status_code,
            )
            return {"success": False, "detail": f"HTTP {response.status_code}"}

        logger.info(
            "channel_http_sent",
            channel=self.channel_name,
            action_id=request.action_id,
            status=response.status_code,
        )
        return {"success": True, "detail": f"HTTP {response.status_code}"}


class WebhookDispatcher(_HttpChannel):
    """
    POST a JSON alert to a webhook.

    Config keys:
    - url: Webhook URL (required)
    - headers: Optional extra headers
    - message: Alert text (default: rule name)
    - timeout: Request timeout in seconds (default: 10)
    """

    channel_name = "webhook"

    async def dispatch(self, request: DispatchRequest) -> dict:
        config = request.config
        url = config.get("url")
        if not url:
            return {"success": False, "detail": "No webhook URL configured"}

        payload = {
            "alert": config.get("message") or request.payload.rule_name,
            "ruleId": request.payload.rule_id,
            "riskScore": request.payload.total_score,
            "riskLevel": request.payload.risk_level.value,
            "timestamp": request.payload.timestamp.isoformat(),
        }
        return await self._post(
            request,
            url,
            payload,
            headers=dict(config.get("headers") or {}),
            timeout=float(config.get("timeout", DEFAULT_HTTP_TIMEOUT)),
        )


class ChatDispatcher(_HttpChannel):
    """
    Post to a Slack-compatible incoming webhook.

    Config keys:
    - webhook_url: Incoming webhook URL (required; ``webhookUrl`` accepted)
    - message: Message text
    """

    channel_name = "chat"

    _COLORS = {
        "critical": "danger",
        "high": "warning",
    }

    async def dispatch(self, request: DispatchRequest) -> dict:
        config = request.config
        url = config.get("webhook_url") or config.get("webhookUrl")
        if not url:
            return {"success": False, "detail": "No chat webhook URL configured"}

        level = request.payload.risk_level.value
        payload = {
            "text": config.get("message") or request.payload.rule_name,
            "attachments": [{
                "color": self._COLORS.get(level, "good"),
                "fields": [
                    {"title": "Risk score", "value": f"{request.payload.total_score:g}", "short": True},
                    {"title": "Risk level", "value": level, "short": True},
                ],
                "ts": int(request.payload.timestamp.timestamp()),
            }],
        }
        return await self._post(request, url, payload)


class SmsDispatcher(_HttpChannel):
    """
    Send a text message through an HTTP SMS gateway.

    Config keys:
    - to: Phone number or list of numbers (required)
    - message: Message text
    - gateway_url: Overrides the configured gateway
    """

    channel_name = "sms"

    def __init__(
        self,
        gateway_url: str = "",
        gateway_token: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(transport)
        self.gateway_url = gateway_url
        self.gateway_token = gateway_token

    async def dispatch(self, request: DispatchRequest) -> dict:
        config = request.config
        recipients = _as_list(config.get("to"))
        if not recipients:
            return {"success": False, "detail": "No SMS recipients configured"}

        url = config.get("gateway_url") or self.gateway_url
        if not url:
            return {"success": False, "detail": "No SMS gateway configured"}

        text = config.get("message") or request.payload.rule_name
        payload = {
            "to": recipients,
            "message": f"{text} (risk score {request.payload.total_score:g}, {request.payload.risk_level.value})",
        }
        headers = {}
        if self.gateway_token:
            headers["Authorization"] = f"Bearer {self.gateway_token}"
        return await self._post(request, url, payload, headers=headers)


class EmailDispatcher:
    """
    Send a plain-text alert email over SMTP.

    Config keys:
    - to: Recipient or list of recipients (required)
    - subject: Subject line (default: rule name)
    - message: Body text
    """

    def __init__(
        self,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        from_email: str = "alerts@riskboard.local",
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email

    def build_message(self, request: DispatchRequest, recipients: list[str]) -> MIMEText:
        config = request.config
        payload = request.payload
        body = (
            f"{config.get('message') or payload.rule_name}\n\n"
            f"{'─' * 50}\n"
            f"Risk score: {payload.total_score:g}\n"
            f"Risk level: {payload.risk_level.value}\n"
            f"Time: {payload.timestamp.isoformat()}\n"
        )
        msg = MIMEText(body, _charset="utf-8")
        msg["Subject"] = config.get("subject") or f"Risk alert: {payload.rule_name}"
        msg["From"] = config.get("from") or self.from_email
        msg["To"] = ", ".join(recipients)
        return msg

    async def dispatch(self, request: DispatchRequest) -> dict:
        recipients = _as_list(request.config.get("to"))
        if not recipients:
            return {"success": False, "detail": "No recipient emails configured"}
        if not self.smtp_host:
            return {"success": False, "detail": "No SMTP host configured"}

        msg = self.build_message(request, recipients)
        try:
            await aiosmtplib.send(
                msg,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user or None,
                password=self.smtp_password or None,
                start_tls=True,
            )
        except aiosmtplib.SMTPException as e:
            logger.error("email_dispatch_error", action_id=request.action_id, error=str(e))
            return {"success": False, "detail": str(e)}

        logger.info("email_alert_sent", action_id=request.action_id, to=recipients)
        return {"success": True, "detail": f"Sent to {len(recipients)} recipients"}


class InternalAlertDispatcher:
    """
    Surface an alert inside the host application.

    Builds an InternalAlert from the action config (title, message,
    severity), keeps the most recent ones, and passes each to ``sink``.
    """

    def __init__(
        self,
        sink: Optional[Callable[[InternalAlert], None]] = None,
        buffer_size: int = 200,
    ):
        self._sink = sink
        self._recent: deque[InternalAlert] = deque(maxlen=buffer_size)

    @property
    def recent(self) -> list[InternalAlert]:
        return list(self._recent)

    async def dispatch(self, request: DispatchRequest) -> dict:
        config = request.config
        alert = InternalAlert(
            id=f"internal_{uuid.uuid4().hex[:16]}",
            rule_id=request.payload.rule_id,
            title=config.get("title") or "Risk alert",
            message=config.get("message") or request.payload.rule_name,
            severity=config.get("severity") or "medium",
            total_score=request.payload.total_score,
            timestamp=request.payload.timestamp,
        )
        self._recent.append(alert)
        if self._sink is not None:
            self._sink(alert)

        logger.info(
            "internal_alert_created",
            alert_id=alert.id,
            rule_id=alert.rule_id,
            severity=alert.severity,
        )
        return {"success": True, "detail": alert.id}


class ActionDispatcher:
    """
    Routes dispatch requests to channel dispatchers.

    Every call is bounded by ``timeout_seconds``; timeouts and exceptions
    become failed results for that action only.
    """

    def __init__(
        self,
        dispatchers: Optional[dict[ActionType, ChannelDispatcher]] = None,
        timeout_seconds: float = 5.0,
    ):
        self._dispatchers: dict[ActionType, ChannelDispatcher] = dict(dispatchers or {})
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        internal_sink: Optional[Callable[[InternalAlert], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ActionDispatcher":
        """Dispatcher with every built-in channel wired from settings."""
        cfg = config or default_settings
        return cls(
            dispatchers={
                ActionType.WEBHOOK: WebhookDispatcher(transport=transport),
                ActionType.CHAT: ChatDispatcher(transport=transport),
                ActionType.SMS: SmsDispatcher(
                    gateway_url=cfg.sms_gateway_url,
                    gateway_token=cfg.sms_gateway_token,
                    transport=transport,
                ),
                ActionType.EMAIL: EmailDispatcher(
                    smtp_host=cfg.alert_smtp_host,
                    smtp_port=cfg.alert_smtp_port,
                    smtp_user=cfg.alert_smtp_user,
                    smtp_password=cfg.alert_smtp_password,
                    from_email=cfg.alert_from_email,
                ),
                ActionType.INTERNAL_ALERT: InternalAlertDispatcher(
                    sink=internal_sink,
                    buffer_size=cfg.internal_alert_buffer_size,
                ),
            },
            timeout_seconds=cfg.dispatch_timeout_seconds,
        )

    def register(self, action_type: ActionType, dispatcher: ChannelDispatcher) -> None:
        self._dispatchers[action_type] = dispatcher

    def get(self, action_type: ActionType) -> Optional[ChannelDispatcher]:
        return self._dispatchers.get(action_type)

    async def dispatch(self, request: DispatchRequest) -> ActionResult:
        dispatcher = self._dispatchers.get(request.action_type)
        if dispatcher is None:
            return self._result(request, False, f"Unknown channel: {request.action_type}")

        try:
            result = await asyncio.wait_for(
                dispatcher.dispatch(request), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                "action_dispatch_timeout",
                action_id=request.action_id,
                channel=request.action_type.value,
                timeout_seconds=self.timeout_seconds,
            )
            return self._result(request, False, f"Timed out after {self.timeout_seconds:g}s")
        except Exception as e:
            logger.error(
                "action_dispatch_error",
                action_id=request.action_id,
                channel=request.action_type.value,
                error=str(e),
            )
            return self._result(request, False, str(e) or type(e).__name__)

        return self._result(
            request, bool(result.get("success")), str(result.get("detail", ""))
        )

    async def dispatch_all(self, requests: Iterable[DispatchRequest]) -> list[ActionResult]:
        """Dispatch concurrently; results keep the order of ``requests``."""
        return list(await asyncio.gather(*(self.dispatch(r) for r in requests)))

    @staticmethod
    def _result(request: DispatchRequest, success: bool, detail: str) -> ActionResult:
        return ActionResult(
            action_id=request.action_id,
            action_type=request.action_type,
            success=success,
            detail=detail,
        )


def _as_list(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]
