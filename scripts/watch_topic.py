#!/usr/bin/env python3
"""Follow one topic's reply thread live and log every change.

Usage:
    python scripts/watch_topic.py <topic-uuid> [--viewer <user-uuid>]
"""

import argparse
import asyncio
import sys

import logfire

from forum.application.usecase.thread import (
    CloseTopicRequest,
    CloseTopicUseCase,
    OpenTopicRequest,
    OpenTopicUseCase,
)
from forum.config import Settings
from forum.domain.model import Forest
from forum.domain.service import EventReconciler
from forum.util.di.container import create_container
from forum.util.logging import setup_logging
from forum.util.observability import configure_logfire


async def watch(topic_id: str, viewer_id: str | None) -> None:
    container = create_container()
    try:
        async with container() as session:
            reconciler = await session.get(EventReconciler)
            open_topic = await session.get(OpenTopicUseCase)
            close_topic = await session.get(CloseTopicUseCase)

            def on_change(forest: Forest) -> None:
                logfire.info(
                    "Thread changed",
                    topic_id=str(forest.topic_id),
                    reply_count=len(forest),
                    root_count=len(forest.roots),
                )

            unwatch = reconciler.watch(on_change)
            try:
                response = await open_topic.execute(
                    OpenTopicRequest(topic_id=topic_id, viewer_id=viewer_id)
                )
                if response.thread is not None:
                    logfire.info(
                        "Watching topic",
                        topic_id=topic_id,
                        reply_count=response.thread.reply_count,
                    )
                # Runs until interrupted
                await asyncio.Event().wait()
            finally:
                unwatch()
                await close_topic.execute(CloseTopicRequest())
    finally:
        await container.close()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("topic_id", help="Topic UUID")
    parser.add_argument("--viewer", default=None, help="Viewer user UUID")
    args = parser.parse_args()

    settings = Settings()
    setup_logging(settings)
    configure_logfire(settings)

    try:
        asyncio.run(watch(args.topic_id, args.viewer))
    except KeyboardInterrupt:
        logfire.info("Stopped watching", topic_id=args.topic_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
