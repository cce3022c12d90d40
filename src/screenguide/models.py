"""Document model for guided screen simulations.

A :class:`Project` owns an ordered list of :class:`Screen` objects and every
screen owns its :class:`Hotspot` regions. Hotspot actions form a discriminated
union keyed by ``type`` so each variant only carries the fields it uses.

Serialised documents use camelCase keys (``imageUrl``, ``isCorrect`` ...) while
Python code works with the snake_case attribute names. Either spelling is
accepted when validating input, as are the flat action keys of older
documents (``message``, ``inputValue``, ``mapStartLat`` ...).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import (
    Annotated,
    Any,
    Callable,
    ClassVar,
    Dict,
    Literal,
    Mapping,
    Sequence,
    TypeVar,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

Clock = Callable[[], datetime]

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""

    return datetime.now(timezone.utc)


def generate_id(prefix: str) -> str:
    """Return a fresh identifier such as ``screen-1717171717171-3f9a0c1b2``."""

    millis = int(utcnow().timestamp() * 1000)
    return f"{prefix}-{millis}-{uuid.uuid4().hex[:9]}"


def _validate_text(value: str, *, field_name: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_name} must be a non-empty string")
    return stripped


class _DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _ActionBase(_DocumentModel):
    # Flat keys used by older documents, mapped to the field they fill.
    _legacy_keys: ClassVar[Dict[str, str]] = {}

    delay: int | None = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not cls._legacy_keys:
            return data
        data = dict(data)
        for legacy, name in cls._legacy_keys.items():
            if legacy not in data:
                continue
            value = data.pop(legacy)
            if name not in data and to_camel(name) not in data:
                data[name] = value
        return data


class NavigateAction(_ActionBase):
    """Move playback to another screen of the same project."""

    type: Literal["navigate"] = "navigate"
    target: str | None = None


class MessageAction(_ActionBase):
    """Show a short text message over the current screen."""

    type: Literal["message"] = "message"
    text: str = ""

    _legacy_keys: ClassVar[Dict[str, str]] = {"message": "text"}


class InputAction(_ActionBase):
    """Simulate keyboard input.

    In ``auto`` mode the expected ``value`` is typed for the user; in
    ``manual`` mode a keyboard is shown and the typed text is compared against
    ``value`` when one is provided.
    """

    type: Literal["input"] = "input"
    value: str | None = None
    mode: Literal["auto", "manual"] = "auto"
    placeholder: str | None = None

    _legacy_keys: ClassVar[Dict[str, str]] = {
        "inputValue": "value",
        "inputMode": "mode",
        "inputPlaceholder": "placeholder",
    }


class VibrateAction(_ActionBase):
    type: Literal["vibrate"] = "vibrate"


class MapCoordinates(_DocumentModel):
    start_lat: float | None = None
    start_lng: float | None = None
    end_lat: float | None = None
    end_lng: float | None = None


_FLAT_COORDINATES = {
    "mapStartLat": "start_lat",
    "mapStartLng": "start_lng",
    "mapEndLat": "end_lat",
    "mapEndLng": "end_lng",
}


class MapAction(_ActionBase):
    """Display a route or location on a map."""

    type: Literal["map"] = "map"
    start_address: str | None = None
    end_address: str | None = None
    coordinates: MapCoordinates | None = None

    _legacy_keys: ClassVar[Dict[str, str]] = {
        "mapStartAddress": "start_address",
        "mapEndAddress": "end_address",
    }

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_coordinates(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        flat = {
            name: data[legacy]
            for legacy, name in _FLAT_COORDINATES.items()
            if data.get(legacy) is not None
        }
        if not flat or data.get("coordinates") is not None:
            return data
        data = {
            key: value for key, value in data.items() if key not in _FLAT_COORDINATES
        }
        data["coordinates"] = flat
        return data


class NoAction(_ActionBase):
    type: Literal["none"] = "none"


HotspotAction = Annotated[
    Union[NavigateAction, MessageAction, InputAction, VibrateAction, MapAction, NoAction],
    Field(discriminator="type"),
]


class Hotspot(_DocumentModel):
    """Clickable rectangle expressed as percentages of the rendered screen.

    Each coordinate is range-checked on its own. Keeping ``x + width`` and
    ``y + height`` within 100 is left to the caller.
    """

    id: str
    x: float = Field(..., ge=0, le=100)
    y: float = Field(..., ge=0, le=100)
    width: float = Field(..., ge=0, le=100)
    height: float = Field(..., ge=0, le=100)
    action: HotspotAction = Field(default_factory=NoAction)
    hint: str | None = None
    is_correct: bool = False


class Screen(_DocumentModel):
    """One simulated app view: an image plus its hotspots."""

    id: str
    name: str
    image_url: str
    voice_guide: str | None = None
    hotspots: list[Hotspot] = Field(default_factory=list)
    order: int = 0
    # Raw upload handle kept only in memory; never serialised.
    image_file: Any = Field(default=None, exclude=True)


class Project(_DocumentModel):
    id: str
    name: str
    description: str | None = None
    screens: list[Screen] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _validate_text(value, field_name="name")

    @field_serializer("created_at")
    def _serialise_created_at(self, value: datetime) -> str:
        return value.isoformat()

    @field_serializer("updated_at")
    def _serialise_updated_at(self, value: datetime) -> str:
        return value.isoformat()

    def find_screen(self, screen_id: str) -> Screen | None:
        for screen in self.screens:
            if screen.id == screen_id:
                return screen
        return None


def clone_action(action: HotspotAction) -> HotspotAction:
    """Return an independent copy of ``action``."""

    if isinstance(action, MapAction) and action.coordinates is not None:
        return action.model_copy(
            update={"coordinates": action.coordinates.model_copy()}
        )
    return action.model_copy()


def clone_hotspot(hotspot: Hotspot) -> Hotspot:
    return hotspot.model_copy(update={"action": clone_action(hotspot.action)})


def clone_screen(screen: Screen, *, keep_file: bool = False) -> Screen:
    """Return a copy of ``screen`` and all of its hotspots.

    The in-memory ``image_file`` handle is dropped unless ``keep_file`` is set.
    """

    return screen.model_copy(
        update={
            "hotspots": [clone_hotspot(hotspot) for hotspot in screen.hotspots],
            "image_file": screen.image_file if keep_file else None,
        }
    )


def clone_project(project: Project, *, keep_files: bool = False) -> Project:
    return project.model_copy(
        update={
            "screens": [
                clone_screen(screen, keep_file=keep_files) for screen in project.screens
            ]
        }
    )


def clone_projects(
    projects: Sequence[Project], *, keep_files: bool = False
) -> list[Project]:
    return [clone_project(project, keep_files=keep_files) for project in projects]


def rekey_project(
    project: Project,
    *,
    name: str | None = None,
    nested: bool = True,
    clock: Clock = utcnow,
) -> Project:
    """Return a clone of ``project`` carrying freshly generated identifiers.

    The project always receives a new id and new timestamps. When ``nested`` is
    true every screen and hotspot gets its own new id as well, and navigate
    actions that pointed at a screen of ``project`` are redirected to the
    matching cloned screen.
    """

    now = clock()
    clone = clone_project(project)
    clone.id = generate_id("project")
    clone.created_at = now
    clone.updated_at = now
    if name is not None:
        clone.name = name

    if not nested:
        return clone

    screen_ids: dict[str, str] = {}
    for screen in clone.screens:
        new_id = generate_id("screen")
        screen_ids[screen.id] = new_id
        screen.id = new_id
        for hotspot in screen.hotspots:
            hotspot.id = generate_id("hotspot")

    for screen in clone.screens:
        for hotspot in screen.hotspots:
            action = hotspot.action
            if isinstance(action, NavigateAction) and action.target in screen_ids:
                hotspot.action = action.model_copy(
                    update={"target": screen_ids[action.target]}
                )
    return clone


def apply_changes(model: _ModelT, changes: Mapping[str, Any]) -> _ModelT:
    """Return a validated copy of ``model`` with ``changes`` applied.

    Keys may use either the attribute name or its camelCase alias.

    Raises:
        ValueError: If a key does not name a field of the model or the
            resulting values fail validation.
    """

    model_cls = type(model)
    aliases = {
        field.alias: name
        for name, field in model_cls.model_fields.items()
        if field.alias is not None
    }

    payload = {name: getattr(model, name) for name in model_cls.model_fields}
    for key, value in changes.items():
        name = key if key in model_cls.model_fields else aliases.get(key)
        if name is None:
            raise ValueError(f"{model_cls.__name__} has no field named '{key}'")
        payload[name] = value

    return model_cls.model_validate(payload)


def project_document(project: Project) -> dict[str, Any]:
    """Return the portable JSON-compatible form of ``project``."""

    return project.model_dump(mode="json", by_alias=True, exclude_none=True)


def collection_document(projects: Sequence[Project]) -> dict[str, Any]:
    return {"projects": [project_document(project) for project in projects]}


__all__ = [
    "Clock",
    "Hotspot",
    "HotspotAction",
    "InputAction",
    "MapAction",
    "MapCoordinates",
    "MessageAction",
    "NavigateAction",
    "NoAction",
    "Project",
    "Screen",
    "VibrateAction",
    "apply_changes",
    "clone_action",
    "clone_hotspot",
    "clone_project",
    "clone_projects",
    "clone_screen",
    "collection_document",
    "generate_id",
    "project_document",
    "rekey_project",
    "utcnow",
]
