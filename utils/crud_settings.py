import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy import select
from allocation.models import Setting

logger = logging.getLogger(__name__)

def get_setting(db: Session, key: str) -> Setting | None:
    return db.execute(select(Setting).where(Setting.key == key)).scalar_one_or_none()

def list_settings(db: Session) -> list[Setting]:
    return list(db.execute(select(Setting).order_by(Setting.key)).scalars().all())

def set_setting(db: Session, key: str, value: str, description: str | None = None) -> Setting:
    setting = get_setting(db, key)
    if setting:
        setting.value = value
        if description is not None:
            setting.description = description
    else:
        setting = Setting(key=key, value=value, description=description)
        db.add(setting)
    return setting

def is_flag_set(db: Session, key: str) -> bool:
    setting = get_setting(db, key)
    return bool(setting) and setting.value == "true"

def parse_deadline(value: str) -> datetime:
    """ISO 8601, trailing Z allowed. Naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def deadline_passed(db: Session, key: str, now: datetime | None = None) -> bool:
    setting = get_setting(db, key)
    if not setting:
        return False
    try:
        deadline = parse_deadline(setting.value)
    except ValueError:
        logger.warning(f"Ignoring unparseable {key} setting: {setting.value!r}")
        return False
    return (now or datetime.now(timezone.utc)) > deadline
