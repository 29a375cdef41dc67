from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, TypeVar

from pydantic import ValidationError

from membership_matrix.data.models import DirectoryBaseModel
from membership_matrix.utils import get_logger


logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=DirectoryBaseModel)


@dataclass(slots=True)
class ValidationIssue:
    """A directory payload that did not match its model."""

    resource: str
    identifier: str | None
    fields: tuple[str, ...] = field(default_factory=tuple)


class DirectoryResponseValidator:
    """Parse directory payloads, skipping and recording the malformed ones."""

    def __init__(self, resource: str) -> None:
        self._resource = resource
        self._issues: list[ValidationIssue] = []

    def parse(self, model: type[ModelT], payload: dict[str, Any]) -> ModelT | None:
        try:
            return model.from_payload(payload)
        except ValidationError as exc:
            raw_id = payload.get("id") if isinstance(payload, dict) else None
            issue = ValidationIssue(
                resource=self._resource,
                identifier=str(raw_id) if raw_id is not None else None,
                fields=tuple(
                    ".".join(str(segment) for segment in error.get("loc", ()))
                    for error in exc.errors()
                ),
            )
            self._issues.append(issue)
            logger.warning(
                "Directory payload validation failed",
                resource=self._resource,
                identifier=issue.identifier,
                fields=", ".join(issue.fields) or "unknown",
            )
            return None

    def parse_many(
        self,
        model: type[ModelT],
        payloads: Iterable[dict[str, Any]],
    ) -> list[ModelT]:
        items: list[ModelT] = []
        for payload in payloads:
            item = self.parse(model, payload)
            if item is not None:
                items.append(item)
        return items

    def issues(self) -> list[ValidationIssue]:
        return list(self._issues)

    def reset(self) -> None:
        self._issues.clear()


__all__ = ["DirectoryResponseValidator", "ValidationIssue"]
