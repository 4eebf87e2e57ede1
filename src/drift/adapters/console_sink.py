"""Console notification sink - prints notifications to the terminal."""

import logging

import click

from drift.core.nudges import Notification

logger = logging.getLogger(__name__)


class ConsoleNotificationSink:
    """Implements NotificationSink protocol by echoing to stdout."""

    def show(self, notification: Notification) -> None:
        logger.info(f"Notification: {notification.title}")
        click.secho(notification.title, bold=True)
        click.echo(notification.body)
        if notification.task_ids:
            click.echo(f"  tasks: {', '.join(notification.task_ids)}")
