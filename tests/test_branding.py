"""
Organization branding and organization catalogs
"""

import pytest

from app.coordinator.branding import Branding
from app.models.catalog import Organization, CustomTopic, CustomTopicItem
from app.schemas.game import GamePhase, RoomUpdate
from app.schemas.item import OrganizationItem
from app.schemas.room import RoomCreate
from factories import seat


@pytest.fixture
async def organization(db):
    """Acme, with one custom topic and the global catalog switched off"""
    async with db.get_session() as session:
        org = Organization(name="Acme", slug="acme", use_knowsy_topics=False, primary_color="#ff6600")
        session.add(org)
        await session.flush()
        custom = CustomTopic(organization_id=org.id, name="Acme Products")
        session.add(custom)
        await session.flush()
        for index, name in enumerate(["Anvil", "Rocket", "Magnet", "Glue", "Spring", "Tunnel"]):
            session.add(CustomTopicItem(custom_topic_id=custom.id, name=name, sort_order=index))
        org_id = org.id
    return org_id


def test_plain_branding():
    branding = Branding()
    assert branding.name == "Knowsy"
    assert branding.organization_id is None
    assert branding.primary_color is None
    assert branding.exit_path == "/play"


async def test_organization_room(store, open_session, organization, topic):
    room = await store.insert_room(RoomCreate(join_code="ACME01", host_name="Hana", organization_id=organization))
    hana = await seat(store, room, "Hana", is_host=True)
    await seat(store, room, "Ivo")
    room = await store.update_room(room.id, RoomUpdate(game_phase=GamePhase.TOPIC_SELECTION))
    session = await open_session(room, hana)

    assert session.branding.name == "Acme"
    assert session.branding.primary_color == "#ff6600"

    # the global "Pizza Toppings" topic is hidden for this organization
    topics = await session.coordinator.list_topics()
    assert [t.name for t in topics] == ["Acme Products"]
    items = await session.coordinator.list_topic_items(topics[0])
    assert all(i.is_custom for i in items)
    assert isinstance(session.coordinator.item_for(topics[0], items[0]), OrganizationItem)

    await session.leave()
    assert session.exit_path == "/org/acme/play"


async def test_unknown_organization_falls_back_to_plain(store):
    branding = await Branding.for_room(store, "missing-org")
    assert branding.name == "Knowsy"
