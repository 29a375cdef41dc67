from __future__ import annotations

import pytest
from pydantic import ValidationError

from membership_matrix.data import (
    ColumnOption,
    DirectoryGroup,
    DirectoryResponseValidator,
    Principal,
)
from tests.factories import make_group


def test_principal_from_directory_payload() -> None:
    principal = Principal.from_payload(
        {
            "@id": "https://site.example.com/++api++/@users/alice",
            "id": "alice",
            "fullname": "Alice Zimmer",
            "email": "alice@example.com",
            "roles": ["Member"],
            "groups": {
                "@id": "https://site.example.com/++api++/@users/alice/groups",
                "items": [{"id": "editors", "title": "Editors"}, {"id": "AuthenticatedUsers"}],
                "items_total": 2,
            },
            "portrait": None,
        }
    )

    assert principal.url == "https://site.example.com/++api++/@users/alice"
    assert principal.groups.ids() == ["editors", "AuthenticatedUsers"]
    assert principal.is_member_of("editors")
    assert not principal.is_member_of("reviewers")


def test_principal_without_groups_has_empty_membership() -> None:
    principal = Principal.from_payload({"id": "bob"})

    assert principal.groups.items == []
    assert principal.roles == []


def test_models_are_frozen() -> None:
    group = make_group("editors", "Editors")

    with pytest.raises(ValidationError):
        group.title = "Changed"  # type: ignore[misc]


def test_column_from_group_uses_title_or_id() -> None:
    titled = ColumnOption.from_group(make_group("editors", "Editors", roles=["Editor"]))
    untitled = ColumnOption.from_group(make_group("AuthenticatedUsers"))

    assert (titled.value, titled.label, titled.roles) == ("editors", "Editors", ["Editor"])
    assert untitled.label == "AuthenticatedUsers"


def test_group_payload_round_trips_aliases() -> None:
    group = DirectoryGroup.from_payload(
        {"@id": "https://site.example.com/++api++/@groups/editors", "id": "editors"}
    )

    assert group.to_payload() == {
        "@id": "https://site.example.com/++api++/@groups/editors",
        "id": "editors",
        "roles": [],
    }


def test_validator_collects_issues_and_resets() -> None:
    validator = DirectoryResponseValidator("groups")

    groups = validator.parse_many(
        DirectoryGroup,
        [{"id": "editors"}, {"id": ""}, {"title": "No id"}],
    )

    assert [group.id for group in groups] == ["editors"]
    issues = validator.issues()
    assert [issue.identifier for issue in issues] == ["", None]
    assert issues[1].fields == ("id",)
    validator.reset()
    assert validator.issues() == []
