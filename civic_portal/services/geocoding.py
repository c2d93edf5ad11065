#civic_portal/services/geocoding.py
import logging
import requests
from civic_portal.core.config import settings
from civic_portal.core.errors import GeolocationError

logger = logging.getLogger(__name__)

MANUAL_ENTRY_MESSAGE = "Could not get location. Please enter it manually."

def geocode_address(query: str) -> tuple[float, float, str]:
    """Resolves a typed address through Nominatim; returns (lat, lng, display name)."""
    query = (query or "").strip()
    if len(query) < 3:
        raise GeolocationError(MANUAL_ENTRY_MESSAGE)
    try:
        r = requests.get(
            settings.geocoder_url,
            params={"q": query, "format": "json", "limit": 1},
            headers={"Accept-Language": "en", "User-Agent": settings.geocoder_user_agent},
            timeout=10,
        )
        if r.status_code == 429:
            logger.warning("Rate limited by geocoder")
            raise GeolocationError(MANUAL_ENTRY_MESSAGE)
        r.raise_for_status()
        results = r.json()
    except requests.RequestException as e:
        logger.error(f"Geocoding failed for {query!r}: {e}", exc_info=True)
        raise GeolocationError(MANUAL_ENTRY_MESSAGE)
    except ValueError:
        logger.error(f"Geocoder returned invalid JSON for {query!r}")
        raise GeolocationError(MANUAL_ENTRY_MESSAGE)

    if not results:
        logger.info(f"No geocoding match for {query!r}")
        raise GeolocationError(MANUAL_ENTRY_MESSAGE)
    top = results[0]
    try:
        return float(top["lat"]), float(top["lon"]), top.get("display_name") or query
    except (KeyError, TypeError, ValueError):
        raise GeolocationError(MANUAL_ENTRY_MESSAGE)
