"""Logfire setup for scripts and long-running listeners.

Domain code logs straight through the `logfire` module:

    logfire.info("Reply created", reply_id=str(reply.id), topic_id=str(topic_id))

    with logfire.span("event_reconciler.attach", topic_id=str(topic_id)):
        ...

This module only decides where that output goes and which libraries are
traced alongside it.
"""

import logfire
from sqlalchemy.ext.asyncio import AsyncEngine

from forum.config import Settings

SERVICE_NAME = "forum-threads"
SERVICE_VERSION = "0.1.0"


def should_send_to_logfire(settings: Settings) -> bool:
    """Explicit OBSERVABILITY__SEND_TO_LOGFIRE wins, otherwise send iff a token is set."""
    observability = settings.observability
    if observability.send_to_logfire is not None:
        return observability.send_to_logfire
    return bool(observability.logfire_token)


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire once per process.

    Args:
        settings: Application settings
    """
    send_to_logfire = should_send_to_logfire(settings)

    logfire.configure(
        service_name=SERVICE_NAME,
        service_version=SERVICE_VERSION,
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
        token=settings.observability.logfire_token,
        console=logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
    )

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
        orphan_policy=settings.threads.orphan_policy,
        push_channel=settings.realtime.channel,
    )


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Trace record fetches and writes.

    Args:
        engine: SQLAlchemy async engine
    """
    logfire.instrument_sqlalchemy(engine=engine.sync_engine, enable_commenter=True)
    logfire.info("SQLAlchemy instrumented")


def instrument_asyncpg() -> None:
    """Trace the push channel's LISTEN connection, which bypasses SQLAlchemy."""
    logfire.instrument_asyncpg()
    logfire.info("asyncpg instrumented")
