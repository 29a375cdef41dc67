from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from membership_matrix.config import Settings
from membership_matrix.directory import DirectoryClient, DirectoryClientConfig, TokenProvider
from membership_matrix.matrix import MembershipMatrixController
from membership_matrix.services import DirectoryService, NotificationCenter, ServiceErrorEvent
from membership_matrix.utils import get_logger
from membership_matrix.utils.errors import describe_exception


logger = get_logger(__name__)


@dataclass(slots=True)
class MatrixSession:
    """Objects wired together for one matrix view."""

    client: DirectoryClient
    directory: DirectoryService
    notifications: NotificationCenter
    controller: MembershipMatrixController

    async def close(self) -> None:
        await self.controller.aclose()
        await self.client.close()


def build_session(
    settings: Settings,
    *,
    session_token: str | None = None,
    token_provider: TokenProvider | None = None,
) -> MatrixSession:
    """Create client, directory service, notifications and controller.

    ``token_provider`` defaults to replaying ``session_token`` on every
    request.
    """
    if not settings.directory_url:
        raise ValueError("Settings.directory_url is required to reach the directory")

    provider = token_provider or (lambda: session_token)
    client = DirectoryClient(
        DirectoryClientConfig(
            base_url=settings.directory_url,
            user_agent=settings.user_agent,
            timeout=settings.request_timeout,
        ),
        provider,
    )
    directory = DirectoryService(client)
    notifications = NotificationCenter()
    controller = MembershipMatrixController(
        directory,
        notifications,
        settings=settings,
        session_token=session_token,
    )
    controller.errors.subscribe(
        lambda descriptor: notifications.notify_error(descriptor.headline, descriptor.detail)
    )
    directory.errors.subscribe(partial(_report_listing_failure, notifications))
    logger.debug("Matrix session built", directory_url=settings.directory_url)
    return MatrixSession(
        client=client,
        directory=directory,
        notifications=notifications,
        controller=controller,
    )


def _report_listing_failure(
    notifications: NotificationCenter, event: ServiceErrorEvent
) -> None:
    # Write failures reach the user through the controller.
    if event.operation == "set_group_members":
        return
    descriptor = describe_exception(event.error)
    notifications.notify_error(descriptor.headline, descriptor.detail)


__all__ = ["MatrixSession", "build_session"]
