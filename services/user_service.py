"""
User profiles and preferences
"""
from typing import Optional

from models import Profile
from services.database_service import db_service
from utils import logger, DatabaseError, ValidationError, Validator
from utils.currency import is_supported_currency

PROFILE_FIELDS = ('email', 'first_name', 'last_name', 'country', 'currency')


class UserService:
    """Profile storage keyed by the Telegram user id"""

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            row = await db_service.fetch_one("SELECT * FROM profiles WHERE user_id = $1", user_id)
            return Profile.from_dict(dict(row)) if row else None
        except Exception as e:
            logger.error(f"Failed to get profile {user_id}: {e}")
            raise DatabaseError(f"Failed to get profile: {e}")

    async def create_or_update_profile(self, user_id: str, **kwargs) -> Profile:
        """Insert the profile or update the given fields"""
        fields = {k: v for k, v in kwargs.items() if k in PROFILE_FIELDS and v is not None}
        if 'currency' in fields:
            fields['currency'] = fields['currency'].upper()
            if not is_supported_currency(fields['currency']):
                raise ValidationError(f"Unsupported currency: {fields['currency']}")
        for key in ('first_name', 'last_name', 'email', 'country'):
            if key in fields:
                fields[key] = Validator.sanitize_string(fields[key], 255) or None

        columns = ['user_id', *fields]
        placeholders = [f"${i}" for i in range(1, len(columns) + 1)]
        if fields:
            conflict = "DO UPDATE SET " + ", ".join(
                [f"{key} = EXCLUDED.{key}" for key in fields] + ["updated_at = NOW()"]
            )
        else:
            conflict = "DO UPDATE SET updated_at = NOW()"

        query = f"""
            INSERT INTO profiles ({', '.join(columns)})
            VALUES ({', '.join(placeholders)})
            ON CONFLICT (user_id) {conflict}
            RETURNING *
        """
        try:
            row = await db_service.fetch_one(query, user_id, *fields.values())
            logger.info(f"Saved profile {user_id}")
            return Profile.from_dict(dict(row))
        except Exception as e:
            logger.error(f"Failed to save profile {user_id}: {e}")
            raise DatabaseError(f"Failed to save profile: {e}")

    async def update_preferences(self, user_id: str, country: Optional[str] = None,
                                 currency: Optional[str] = None) -> Profile:
        if country is None and currency is None:
            raise ValidationError("No fields to update")
        return await self.create_or_update_profile(user_id, country=country, currency=currency)

    async def delete_profile(self, user_id: str) -> bool:
        try:
            result = await db_service.execute("DELETE FROM profiles WHERE user_id = $1", user_id)
            if "DELETE 1" in result:
                logger.info(f"Deleted profile {user_id}")
                return True
            return False
        except Exception as e:
            logger.error(f"Failed to delete profile {user_id}: {e}")
            raise DatabaseError(f"Failed to delete profile: {e}")


user_service = UserService()
