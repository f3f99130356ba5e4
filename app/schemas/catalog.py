"""
Catalog Pydantic schemas
Topics, topic items and organization branding
"""

from pydantic import BaseModel
from typing import Optional


class TopicView(BaseModel):
    """A topic offered during topic selection"""
    id: str
    name: str
    description: Optional[str] = None
    is_custom: bool = False

    class Config:
        from_attributes = True


class TopicItemView(BaseModel):
    """A rankable item of a topic"""
    id: str
    topic_id: str
    name: str
    image_url: Optional[str] = None
    is_custom: bool = False

    class Config:
        from_attributes = True


class OrganizationView(BaseModel):
    """Organization branding and catalog settings"""
    id: str
    name: str
    slug: str
    use_knowsy_topics: bool = True
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    font_family: Optional[str] = None
    logo_url: Optional[str] = None

    class Config:
        from_attributes = True
