from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class FormModel(Base):
    __tablename__ = "forms"

    id = Column(String, primary_key=True)
    share_id = Column(String, unique=True, index=True)
    owner_id = Column(String, index=True)
    name = Column(String)
    description = Column(Text)
    fields_json = Column(Text)
    settings_json = Column(Text)
    published = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True))


class SubmissionModel(Base):
    __tablename__ = "submissions"

    id = Column(String, primary_key=True)
    form_id = Column(String, index=True)
    data_json = Column(Text)
    metadata_json = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True))


class WebhookModel(Base):
    __tablename__ = "webhooks"

    id = Column(String, primary_key=True)
    form_id = Column(String, index=True)
    url = Column(Text)
    secret = Column(String)
    active = Column(Boolean, default=True)
    events_json = Column(Text)
    created_at = Column(DateTime(timezone=True))


class FileModel(Base):
    __tablename__ = "files"

    id = Column(String, primary_key=True)
    form_id = Column(String, index=True)
    original_name = Column(String)
    stored_path = Column(Text)
    content_type = Column(String)
    size = Column(Integer)
    created_at = Column(DateTime(timezone=True))
