"""Outbound email through fastapi-mail.

Learn: The mailer is a thin async wrapper. Transport failures surface as
EmailDeliveryError so callers can roll back whatever they persisted for
a message the user will never receive.
"""

from functools import lru_cache

import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from fastapi_mail.errors import ConnectionErrors

from authflow.config import settings
from authflow.errors import UpstreamError

logger = structlog.get_logger()


class EmailDeliveryError(UpstreamError):
    default_message = "There was an error sending the email. Try again later!"


class Mailer:
    def __init__(self, config: ConnectionConfig):
        self.fast_mail = FastMail(config)

    async def send(self, to: str, subject: str, message: str) -> None:
        msg = MessageSchema(
            subject=subject,
            recipients=[to],
            body=message,
            subtype=MessageType.plain,
        )
        try:
            await self.fast_mail.send_message(msg)
        except ConnectionErrors as e:
            logger.error("mail.send_failed", to=to, error=str(e))
            raise EmailDeliveryError() from e
        logger.info("mail.sent", to=to, subject=subject)


def build_connection_config(**overrides) -> ConnectionConfig:
    """fastapi-mail config from settings; keyword overrides win (SUPPRESS_SEND=1 in tests)."""
    values = dict(
        MAIL_USERNAME=settings.mail_username,
        MAIL_PASSWORD=settings.mail_password,
        MAIL_FROM=settings.mail_from,
        MAIL_FROM_NAME=settings.mail_from_name,
        MAIL_PORT=settings.mail_port,
        MAIL_SERVER=settings.mail_server,
        MAIL_STARTTLS=settings.mail_starttls,
        MAIL_SSL_TLS=settings.mail_ssl_tls,
        USE_CREDENTIALS=settings.mail_use_credentials,
        VALIDATE_CERTS=settings.mail_validate_certs,
        TIMEOUT=settings.mail_timeout,
    )
    values.update(overrides)
    return ConnectionConfig(**values)


@lru_cache
def get_mailer() -> Mailer:
    """FastAPI dependency — one mailer per process."""
    return Mailer(build_connection_config())
