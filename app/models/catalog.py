"""
Catalog models
Global topics, organization topics and organization branding
"""

from sqlalchemy import Column, String, Boolean, Integer, Text, ForeignKey
from app.core.database import Base
from app.models.room import _new_id


class Organization(Base):
    """A white-label organization with its own topics and branding"""

    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    use_knowsy_topics = Column(Boolean, default=True, nullable=False)

    primary_color = Column(String(20), nullable=True)
    secondary_color = Column(String(20), nullable=True)
    font_family = Column(String(100), nullable=True)
    logo_url = Column(String(500), nullable=True)


class Topic(Base):
    """Global catalog topic"""

    __tablename__ = "topics"

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)


class TopicItem(Base):
    """Global catalog item"""

    __tablename__ = "topic_items"

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    topic_id = Column(String(36), ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    image_url = Column(String(500), nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)


class CustomTopic(Base):
    """Organization catalog topic"""

    __tablename__ = "custom_topics"

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    organization_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"),
                             nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)


class CustomTopicItem(Base):
    """Organization catalog item"""

    __tablename__ = "custom_topic_items"

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    custom_topic_id = Column(String(36), ForeignKey("custom_topics.id", ondelete="CASCADE"),
                             nullable=False, index=True)
    name = Column(String(100), nullable=False)
    image_url = Column(String(500), nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
