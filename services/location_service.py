"""
Country / state / city / locality lookups
"""
from typing import List, Optional

from models import Country, State, City, Locality
from services.api_client import api_client, ApiResult
from services.database_service import db_service
from utils import logger, DatabaseError
from utils.cache import async_cached


def _unwrap(result: ApiResult, what: str) -> list:
    if not result.ok:
        logger.error(f"Failed to load {what}: {result.error}")
        raise DatabaseError(f"Failed to load {what}: {result.error}")
    return list(result.data or [])


class LocationService:
    """Geographic hierarchy used by the cost-of-living and tax forms"""

    @async_cached(key_prefix="countries")
    async def get_countries(self) -> List[Country]:
        rows = _unwrap(await api_client.get_countries(), "countries")
        return [Country.from_dict(dict(row)) for row in rows]

    async def get_country_by_code(self, code: str) -> Optional[Country]:
        code = (code or "").upper()
        for country in await self.get_countries():
            if country.code == code:
                return country
        return None

    async def get_states(self, country_id: int) -> List[State]:
        rows = _unwrap(await api_client.get_states(country_id), "states")
        return [State.from_dict(dict(row)) for row in rows]

    async def get_cities(self, state_id: int) -> List[City]:
        rows = _unwrap(await api_client.get_cities(state_id), "cities")
        return [City.from_dict(dict(row)) for row in rows]

    async def get_localities(self, city_id: int) -> List[Locality]:
        rows = _unwrap(await api_client.get_localities(city_id), "localities")
        return [Locality.from_dict(dict(row)) for row in rows]

    async def search_cities(self, query: str, limit: int = 20) -> List[City]:
        """Cities whose name starts with query, most populous first"""
        if not query or not query.strip():
            return []
        try:
            rows = await db_service.fetch_all(
                """
                SELECT * FROM cities WHERE name ILIKE $1
                ORDER BY population DESC NULLS LAST, name
                LIMIT $2
                """,
                f"{query.strip()}%", limit
            )
            return [City.from_dict(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"City search for '{query}' failed: {e}")
            raise DatabaseError(f"Failed to search cities: {e}")


location_service = LocationService()
