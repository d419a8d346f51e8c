from sqlalchemy import Boolean, Column, Integer, String, DateTime, Text, UniqueConstraint
from datetime import datetime
from .database import Base

# ============= USER MODEL =============

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True)
    email = Column(String, unique=True, index=True)
    is_active = Column(Boolean, default=True)
    is_superuser = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

# ============= PLUGIN CONFIG MODEL =============

class ConfigPlugin(Base):
    """Key/value configuration store, one row per (plugin, name)"""
    __tablename__ = "config_plugins"

    id = Column(Integer, primary_key=True, index=True)
    plugin = Column(String(100), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    value = Column(Text, nullable=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('plugin', 'name', name='uq_config_plugin_name'),
    )
