from __future__ import annotations

from collections.abc import Iterator

import pytest

from membership_matrix.utils import LoggingOptions, configure_logging
from tests.factories import make_group, make_principal
from tests.stubs import FakeDirectory, RecordingNotifier


@pytest.fixture(scope="session", autouse=True)
def quiet_logging(tmp_path_factory: pytest.TempPathFactory) -> Iterator[None]:
    """Send test logs to a temporary file only."""

    log_path = tmp_path_factory.mktemp("logs") / "membership-matrix.log"
    configure_logging(LoggingOptions(console=False, debug=True, log_path=log_path))
    yield


@pytest.fixture
def directory() -> FakeDirectory:
    """Small directory: three users, four groups including the pseudo-group."""

    groups = [
        make_group("editors", "Editors", roles=["Editor"]),
        make_group("reviewers", "Reviewers", roles=["Reviewer"]),
        make_group("Site Administrators", "Site Administrators", roles=["Site Administrator"]),
        make_group("Administrators", "administrators", roles=["Manager"]),
        make_group("AuthenticatedUsers", roles=[]),
    ]
    principals = [
        make_principal("alice", "Alice Zimmer", groups=["editors", "AuthenticatedUsers"]),
        make_principal("bob", "Bob Adams", groups=["AuthenticatedUsers"]),
        make_principal("carol", None, groups=["reviewers", "AuthenticatedUsers"]),
        make_principal("admin", "Ada Admin", roles=["Manager"], groups=["Administrators"]),
    ]
    return FakeDirectory(principals=principals, groups=groups)


@pytest.fixture
def notifier(directory: FakeDirectory) -> RecordingNotifier:
    return RecordingNotifier(directory.calls)
