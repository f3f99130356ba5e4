"""
Ranked item parsing tests
"""

from app.schemas.game import SelectionView
from app.schemas.item import CatalogItem, OrganizationItem, CustomItem, parse_items, dump_items


def test_tagged_items_parse_to_their_variant():
    items = parse_items([
        {"kind": "catalog", "id": "1", "name": "Cheese"},
        {"kind": "organization", "id": "2", "name": "Team Lunch"},
        {"kind": "custom", "id": "3", "name": "My Dog"},
    ])
    assert [type(i) for i in items] == [CatalogItem, OrganizationItem, CustomItem]


def test_legacy_string_ids():
    items = parse_items(["abc", "custom-Grandma's Lasagna"])
    assert isinstance(items[0], CatalogItem)
    assert items[0].id == "abc"
    assert isinstance(items[1], CustomItem)
    assert items[1].name == "Grandma's Lasagna"


def test_legacy_dicts_use_is_custom_flag_and_prefix():
    items = parse_items([
        {"id": "x1", "name": "Ocean", "isCustom": True},
        {"id": "custom-Pool", "name": "Pool"},
        {"id": "x2", "name": "Lake", "image_url": "/lake.png"},
    ])
    assert isinstance(items[0], OrganizationItem)
    assert isinstance(items[1], CustomItem)
    assert isinstance(items[2], CatalogItem)
    assert items[2].image_url == "/lake.png"


def test_dump_keeps_the_tag():
    dumped = dump_items([OrganizationItem(id="1", name="Ocean")])
    assert dumped == [{"kind": "organization", "id": "1", "name": "Ocean", "image_url": None}]


def test_selection_view_item_ids_preserve_rank_order():
    view = SelectionView(
        id="s1", player_id="p1", room_id="r1", round=1, topic_id="t1",
        ordered_items=["c", "a", "b"],
    )
    assert view.item_ids == ["c", "a", "b"]
