import logging

from sqlalchemy.orm import Session

from app.models.auth import User, UserSettings
from app.schemas.auth import UserSettingsUpdate

logger = logging.getLogger(__name__)


class UserPreferences:
    """Per-user preferences, created lazily with defaults."""

    @staticmethod
    def get(db: Session, user: User) -> UserSettings:
        prefs = db.query(UserSettings).filter(UserSettings.user_id == user.id).first()
        if prefs:
            return prefs
        prefs = UserSettings(user_id=user.id)
        db.add(prefs)
        db.commit()
        db.refresh(prefs)
        logger.info("Created default settings for user %s", user.id)
        return prefs

    @staticmethod
    def update(db: Session, user: User, payload: UserSettingsUpdate) -> UserSettings:
        prefs = UserPreferences.get(db, user)
        data = payload.model_dump(exclude_unset=True)
        if "custom_preferences" in data and data["custom_preferences"] is not None:
            merged = dict(prefs.custom_preferences or {})
            merged.update(data["custom_preferences"])
            data["custom_preferences"] = merged
        for key, value in data.items():
            if value is None and key != "custom_preferences":
                continue
            setattr(prefs, key, value)
        db.commit()
        db.refresh(prefs)
        logger.info("Updated settings for user %s", user.id)
        return prefs

    @staticmethod
    def reset(db: Session, user: User) -> UserSettings:
        prefs = UserPreferences.get(db, user)
        db.delete(prefs)
        db.commit()
        return UserPreferences.get(db, user)


user_preferences = UserPreferences()
