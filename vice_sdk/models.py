"""Pydantic models for production records and continuity conflicts."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional
from uuid import NAMESPACE_URL, uuid4, uuid5

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

ConflictType = Literal["style_drift", "character_drift", "wardrobe_mismatch"]
Severity = Literal["warning", "error"]
AssetType = Literal["actor", "prop", "location"]

STYLE_DRIFT: ConflictType = "style_drift"
CHARACTER_DRIFT: ConflictType = "character_drift"
WARDROBE_MISMATCH: ConflictType = "wardrobe_mismatch"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


def seed_id(film_id: str, *parts: Any) -> str:
    """Stable id for a seed record that was written without one."""

    path = "/".join(str(part) for part in (film_id, *parts))
    return str(uuid5(NAMESPACE_URL, f"vice://seed/{path}"))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class Shot(BaseModel):
    """One planned or generated unit of footage."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    film_id: str
    scene_number: int
    created_at: UtcDatetime = Field(default_factory=utcnow)
    prompt_text: Optional[str] = None
    style_contract_version: Optional[int] = None


class StyleContract(BaseModel):
    """Versioned snapshot of a film's visual style rules."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(default_factory=new_id)
    film_id: str
    version: int = Field(default=1, ge=1)
    visual_dna: Optional[str] = None


class IdentityToken(BaseModel):
    """Symbolically addressable production asset keyed by its reference code."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    film_id: str
    asset_type: AssetType
    internal_ref_code: str
    display_name: str
    is_dirty: bool = False


class WardrobeAssignment(BaseModel):
    """A character wearing one clothing item in one scene."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    film_id: str
    scene_number: int
    character_name: str
    clothing_item: str
    created_at: UtcDatetime = Field(default_factory=utcnow)


class ConflictFinding(BaseModel):
    """A rule finding before it is recorded in the store."""

    scene_number: int
    shot_id: Optional[str] = None
    conflict_type: ConflictType
    description: str
    severity: Severity


class Conflict(ConflictFinding):
    """A recorded continuity conflict."""

    id: str = Field(default_factory=new_id)
    film_id: str
    resolved: bool = False
    resolved_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime = Field(default_factory=utcnow)


class Scope(BaseModel):
    """The film, and optionally the scene, a detection pass covers."""

    model_config = ConfigDict(frozen=True)

    film_id: str
    scene_number: Optional[int] = None

    def describe(self) -> str:
        if self.scene_number is None:
            return f"film {self.film_id}"
        return f"film {self.film_id} scene {self.scene_number}"


class Snapshot(BaseModel):
    """Records read for one detection pass."""

    scope: Scope
    shots: List[Shot] = Field(default_factory=list)
    style_contract: Optional[StyleContract] = None
    dirty_tokens: List[IdentityToken] = Field(default_factory=list)
    wardrobe: List[WardrobeAssignment] = Field(default_factory=list)

    @property
    def current_style_version(self) -> Optional[int]:
        if self.style_contract is None:
            return None
        return self.style_contract.version


_SEED_KEYS = ("shots", "style_contracts", "identity_tokens", "wardrobe", "conflicts")


def _natural_key(key: str, index: int, item: dict) -> tuple:
    if key == "style_contracts":
        return ("contract", item.get("version", 1))
    if key == "identity_tokens":
        return ("token", item.get("internal_ref_code"))
    if key == "wardrobe":
        return (
            "wardrobe",
            item.get("scene_number"),
            item.get("character_name"),
            item.get("clothing_item"),
        )
    return (key, index)


def _seed_item(film_id: str, key: str, index: int, item: dict) -> dict:
    item = {"film_id": film_id, **item}
    if not item.get("id"):
        item["id"] = seed_id(film_id, *_natural_key(key, index, item))
    return item


class FilmSeed(BaseModel):
    """Records for one film, as loaded from a seed file."""

    film_id: str
    shots: List[Shot] = Field(default_factory=list)
    style_contracts: List[StyleContract] = Field(default_factory=list)
    identity_tokens: List[IdentityToken] = Field(default_factory=list)
    wardrobe: List[WardrobeAssignment] = Field(default_factory=list)
    conflicts: List[Conflict] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fill_film_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "film_id" not in data:
            return data
        data = dict(data)
        film_id = data["film_id"]
        for key in _SEED_KEYS:
            items = data.get(key)
            if isinstance(items, list):
                data[key] = [
                    _seed_item(film_id, key, index, item) if isinstance(item, dict) else item
                    for index, item in enumerate(items)
                ]
        return data


class Seed(BaseModel):
    """Collection of film records with a version identifier."""

    version: str = "1"
    films: List[FilmSeed] = Field(default_factory=list)
