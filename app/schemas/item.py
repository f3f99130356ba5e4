"""
Ranked item schemas
Items are a tagged variant; legacy untagged shapes are still read
"""

from pydantic import BaseModel, BeforeValidator, TypeAdapter
from typing import Optional, Union, Literal, Any, List, Annotated

LEGACY_CUSTOM_PREFIX = "custom-"


class CatalogItem(BaseModel):
    """An item backed by a row of the global topic catalog"""
    kind: Literal["catalog"] = "catalog"
    id: str
    name: str
    image_url: Optional[str] = None


class OrganizationItem(BaseModel):
    """An item backed by a row of an organization's custom catalog"""
    kind: Literal["organization"] = "organization"
    id: str
    name: str
    image_url: Optional[str] = None


class CustomItem(BaseModel):
    """A freeform item typed by the player, with no backing row"""
    kind: Literal["custom"] = "custom"
    id: str
    name: str
    image_url: Optional[str] = None


def _coerce_legacy(value: Any) -> Any:
    """Tag untagged item payloads written by older clients"""
    if isinstance(value, str):
        if value.startswith(LEGACY_CUSTOM_PREFIX):
            return {"kind": "custom", "id": value, "name": value[len(LEGACY_CUSTOM_PREFIX):]}
        return {"kind": "catalog", "id": value, "name": value}

    if isinstance(value, dict) and "kind" not in value:
        data = {k: v for k, v in value.items() if k != "isCustom"}
        data.setdefault("name", str(data.get("id", "")))
        item_id = str(data.get("id", ""))
        if item_id.startswith(LEGACY_CUSTOM_PREFIX):
            data["kind"] = "custom"
        elif value.get("isCustom"):
            data["kind"] = "organization"
        else:
            data["kind"] = "catalog"
        return data

    return value


SelectionItem = Annotated[
    Union[CatalogItem, OrganizationItem, CustomItem],
    BeforeValidator(_coerce_legacy),
]

_items_adapter = TypeAdapter(List[SelectionItem])


def parse_items(raw: Any) -> List[Union[CatalogItem, OrganizationItem, CustomItem]]:
    """Parse a stored ordered_items column into tagged items"""
    return _items_adapter.validate_python(raw or [])


def dump_items(items) -> List[dict]:
    """Serialize tagged items for storage"""
    return [item.model_dump() for item in items]
