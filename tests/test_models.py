"""Unit tests for the :mod:`screenguide.models` module."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from screenguide.models import (
    Hotspot,
    InputAction,
    MapAction,
    MapCoordinates,
    MessageAction,
    NavigateAction,
    NoAction,
    Project,
    apply_changes,
    clone_project,
    clone_screen,
    generate_id,
    project_document,
    rekey_project,
)


def _project(make_screen: Any, make_hotspot: Any) -> Project:
    return Project(
        id="project-1",
        name="Bank App",
        screens=[
            make_screen(
                "screen-1",
                hotspots=[
                    make_hotspot("hotspot-1", action=NavigateAction(target="screen-2")),
                    make_hotspot(
                        "hotspot-2",
                        action=MapAction(
                            start_address="City Hall",
                            coordinates=MapCoordinates(start_lat=37.5, start_lng=127.0),
                        ),
                    ),
                ],
            ),
            make_screen("screen-2", name="Transfer", order=1),
        ],
    )


def test_action_payloads_parse_into_their_variant() -> None:
    hotspot = Hotspot.model_validate(
        {
            "id": "h1",
            "x": 5,
            "y": 5,
            "width": 20,
            "height": 10,
            "isCorrect": True,
            "action": {
                "type": "input",
                "value": "1234",
                "mode": "manual",
                "delay": 300,
            },
        }
    )

    assert isinstance(hotspot.action, InputAction)
    assert hotspot.action.value == "1234"
    assert hotspot.action.mode == "manual"
    assert hotspot.action.delay == 300
    assert hotspot.is_correct is True


def test_unknown_action_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Hotspot.model_validate(
            {
                "id": "h1",
                "x": 0,
                "y": 0,
                "width": 1,
                "height": 1,
                "action": {"type": "teleport"},
            }
        )


def test_hotspot_defaults_to_no_action() -> None:
    hotspot = Hotspot(id="h1", x=0, y=0, width=10, height=10)

    assert isinstance(hotspot.action, NoAction)
    assert hotspot.is_correct is False


@pytest.mark.parametrize("field_name", ["x", "y", "width", "height"])
def test_hotspot_percentages_must_stay_within_bounds(field_name: str) -> None:
    values = {"x": 10, "y": 10, "width": 10, "height": 10, field_name: 120}

    with pytest.raises(ValidationError):
        Hotspot(id="h1", **values)


def test_hotspot_does_not_enforce_combined_extent() -> None:
    hotspot = Hotspot(id="h1", x=80, y=90, width=50, height=50)

    assert hotspot.x + hotspot.width > 100


def test_project_name_must_not_be_blank() -> None:
    with pytest.raises(ValidationError):
        Project(id="p1", name="   ")


def test_project_document_uses_camel_case_and_omits_unset_fields(
    make_screen: Any, make_hotspot: Any
) -> None:
    project = _project(make_screen, make_hotspot)
    project.screens[0].image_file = object()

    document = project_document(project)

    screen = document["screens"][0]
    assert "description" not in document
    assert "createdAt" in document and "updatedAt" in document
    assert screen["imageUrl"].startswith("data:image/png")
    assert "imageFile" not in screen and "image_file" not in screen
    assert screen["hotspots"][0]["isCorrect"] is True
    assert screen["hotspots"][0]["action"] == {"type": "navigate", "target": "screen-2"}
    assert "hint" not in screen["hotspots"][0]
    assert screen["hotspots"][1]["action"]["coordinates"] == {
        "startLat": 37.5,
        "startLng": 127.0,
    }


def test_clone_screen_is_independent_and_drops_file_handle(
    make_screen: Any, make_hotspot: Any
) -> None:
    handle = object()
    screen = make_screen(hotspots=[make_hotspot()], image_file=handle)

    clone = clone_screen(screen)
    clone.hotspots[0].x = 55
    clone.hotspots.append(make_hotspot("hotspot-2"))

    assert clone.image_file is None
    assert screen.image_file is handle
    assert screen.hotspots[0].x == 10
    assert len(screen.hotspots) == 1
    assert clone_screen(screen, keep_file=True).image_file is handle


def test_clone_project_copies_nested_map_coordinates(
    make_screen: Any, make_hotspot: Any
) -> None:
    project = _project(make_screen, make_hotspot)

    clone = clone_project(project)
    action = clone.screens[0].hotspots[1].action
    assert isinstance(action, MapAction)
    assert action.coordinates is not None
    action.coordinates.start_lat = 0.0

    original = project.screens[0].hotspots[1].action
    assert isinstance(original, MapAction)
    assert original.coordinates is not None
    assert original.coordinates.start_lat == 37.5


def test_rekey_project_replaces_every_identifier(
    make_screen: Any, make_hotspot: Any
) -> None:
    project = _project(make_screen, make_hotspot)

    clone = rekey_project(project, name="Bank App (copy)")

    assert clone.id != project.id
    assert clone.name == "Bank App (copy)"
    original_ids = {s.id for s in project.screens} | {
        h.id for s in project.screens for h in s.hotspots
    }
    clone_ids = {s.id for s in clone.screens} | {
        h.id for s in clone.screens for h in s.hotspots
    }
    assert original_ids.isdisjoint(clone_ids)
    assert len(clone_ids) == 4

    navigate = clone.screens[0].hotspots[0].action
    assert isinstance(navigate, NavigateAction)
    assert navigate.target == clone.screens[1].id


def test_rekey_project_can_keep_nested_identifiers(
    make_screen: Any, make_hotspot: Any
) -> None:
    project = _project(make_screen, make_hotspot)

    clone = rekey_project(project, nested=False)

    assert clone.id != project.id
    assert [s.id for s in clone.screens] == ["screen-1", "screen-2"]


def test_apply_changes_accepts_aliases_and_validates(make_screen: Any) -> None:
    screen = make_screen()

    updated = apply_changes(screen, {"voiceGuide": "Press send", "name": "Send"})

    assert updated.voice_guide == "Press send"
    assert updated.name == "Send"
    assert screen.name == "Home"

    with pytest.raises(ValueError):
        apply_changes(screen, {"colour": "blue"})
    with pytest.raises(ValidationError):
        apply_changes(screen, {"hotspots": "not a list"})


def test_apply_changes_parses_action_mappings(make_hotspot: Any) -> None:
    hotspot = make_hotspot()

    updated = apply_changes(
        hotspot, {"action": {"type": "message", "text": "Well done"}}
    )

    assert isinstance(updated.action, MessageAction)
    assert updated.action.text == "Well done"


def test_generate_id_is_prefixed_and_unique() -> None:
    identifiers = {generate_id("screen") for _ in range(50)}

    assert len(identifiers) == 50
    assert all(identifier.startswith("screen-") for identifier in identifiers)


def test_flat_action_keys_from_older_documents_are_accepted() -> None:
    message = Hotspot.model_validate(
        {
            "id": "h1",
            "x": 0,
            "y": 0,
            "width": 10,
            "height": 10,
            "action": {"type": "message", "message": "Tap send"},
        }
    ).action
    typed = InputAction.model_validate(
        {"type": "input", "inputValue": "1234", "inputMode": "manual"}
    )
    route = MapAction.model_validate(
        {
            "type": "map",
            "mapStartAddress": "City Hall",
            "mapEndAddress": "Airport",
            "mapStartLat": 37.56,
            "mapStartLng": 126.97,
            "mapEndLat": 37.46,
        }
    )

    assert isinstance(message, MessageAction)
    assert message.text == "Tap send"
    assert typed.value == "1234"
    assert typed.mode == "manual"
    assert route.start_address == "City Hall"
    assert route.end_address == "Airport"
    assert route.coordinates == MapCoordinates(
        start_lat=37.56, start_lng=126.97, end_lat=37.46
    )
    assert route.model_dump(by_alias=True, exclude_none=True) == {
        "type": "map",
        "startAddress": "City Hall",
        "endAddress": "Airport",
        "coordinates": {"startLat": 37.56, "startLng": 126.97, "endLat": 37.46},
    }


def test_nested_keys_win_over_flat_ones() -> None:
    typed = InputAction.model_validate(
        {"type": "input", "value": "new", "inputValue": "old"}
    )

    assert typed.value == "new"


def test_navigate_target_is_optional() -> None:
    action = NavigateAction.model_validate({"type": "navigate"})

    assert action.target is None
