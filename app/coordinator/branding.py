"""
Organization branding
One capability object instead of separate plain and organization code paths
"""

from typing import Optional

from app.core.config import settings
from app.schemas.catalog import OrganizationView


class Branding:
    """Theme and navigation for a session; plain Knowsy when organization is None"""

    def __init__(self, organization: Optional[OrganizationView] = None):
        self.organization = organization

    @property
    def organization_id(self) -> Optional[str]:
        return self.organization.id if self.organization else None

    @property
    def name(self) -> str:
        return self.organization.name if self.organization else "Knowsy"

    @property
    def primary_color(self) -> Optional[str]:
        return self.organization.primary_color if self.organization else None

    @property
    def secondary_color(self) -> Optional[str]:
        return self.organization.secondary_color if self.organization else None

    @property
    def font_family(self) -> Optional[str]:
        return self.organization.font_family if self.organization else None

    @property
    def exit_path(self) -> str:
        """Where a player lands after leaving the room"""
        if self.organization and self.organization.slug:
            return settings.ORGANIZATION_EXIT_PATH.format(slug=self.organization.slug)
        return settings.EXIT_PATH

    @classmethod
    async def for_room(cls, store, organization_id: Optional[str]) -> "Branding":
        if not organization_id:
            return cls()
        return cls(await store.get_organization(organization_id))
