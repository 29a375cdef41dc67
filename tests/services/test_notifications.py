from __future__ import annotations

from membership_matrix.services import NotificationCenter, ToastLevel, ToastMessage


def test_notify_success_publishes_success_toast() -> None:
    center = NotificationCenter()
    toasts: list[ToastMessage] = []
    center.published.subscribe(toasts.append)

    center.notify_success("Success", "Membership updated")
    center.notify_error("Directory request failed.", "boom")

    assert toasts == [
        ToastMessage(title="Success", text="Membership updated", level=ToastLevel.SUCCESS),
        ToastMessage(title="Directory request failed.", text="boom", level=ToastLevel.ERROR),
    ]
