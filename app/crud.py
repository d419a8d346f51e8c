from sqlalchemy.orm import Session
from typing import Optional
from . import models

# ============= USER CRUD =============

def get_user_by_username(db: Session, username: str):
    return db.query(models.User).filter(models.User.username == username).first()

# ============= CONFIG CRUD =============

def get_config(db: Session, plugin: str, name: str) -> Optional[str]:
    row = db.query(models.ConfigPlugin).filter(
        models.ConfigPlugin.plugin == plugin,
        models.ConfigPlugin.name == name
    ).first()
    return row.value if row else None

def get_configs(db: Session, plugin: str, names: list) -> dict:
    rows = db.query(models.ConfigPlugin).filter(
        models.ConfigPlugin.plugin == plugin,
        models.ConfigPlugin.name.in_(names)
    ).all()
    return {row.name: row.value for row in rows}

def set_config(db: Session, plugin: str, name: str, value: Optional[str], commit: bool = True):
    row = db.query(models.ConfigPlugin).filter(
        models.ConfigPlugin.plugin == plugin,
        models.ConfigPlugin.name == name
    ).first()
    if row is None:
        row = models.ConfigPlugin(plugin=plugin, name=name, value=value)
        db.add(row)
    else:
        row.value = value
    if commit:
        db.commit()
        db.refresh(row)
    return row
