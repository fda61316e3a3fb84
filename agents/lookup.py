"""
Manual game lookup: store search by name, or detail lookup by AppID.
Both degrade to an empty result instead of raising.
"""

import logging
from typing import List, Optional
from urllib.parse import urlencode

from agents.classifier import build_details_url, extract_details
from config.settings import settings
from models.schemas import Candidate

logger = logging.getLogger(__name__)


def build_store_search_url(query: str) -> str:
    params = {"term": query, "l": settings.STORE_LANGUAGE, "cc": settings.STORE_COUNTRY}
    return f"{settings.STORE_BASE_URL}/api/storesearch/?{urlencode(params)}"


class GameLookup:
    def __init__(self, relay):
        self.relay = relay

    def search_games(self, query: str) -> List[Candidate]:
        try:
            data = self.relay.fetch(build_store_search_url(query))
        except Exception as e:
            logger.error(f"Error searching games for '{query}': {e}")
            return []
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            return []

        found: List[Candidate] = []
        for item in data["items"]:
            try:
                found.append(Candidate(
                    app_id=int(item["id"]),
                    name=item.get("name") or "Unknown",
                    logo=item.get("tiny_image") or "",
                ))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed search item {item!r}: {e}")
        return found

    def get_game_details(self, app_id: int) -> Optional[Candidate]:
        try:
            details = extract_details(self.relay.fetch(build_details_url(app_id)), app_id)
            if details is None:
                return None
            developers = details.get("developers") or []
            return Candidate(
                app_id=int(details.get("steam_appid") or app_id),
                name=details.get("name") or "Unknown",
                logo=details.get("header_image") or "",
                release_date=(details.get("release_date") or {}).get("date") or "Unknown",
                developers=developers[:1] or ["Unknown"],
                publishers=list(details.get("publishers") or []),
            )
        except Exception as e:
            logger.error(f"Error fetching game details for {app_id}: {e}")
            return None

    def search_by_name_or_id(self, query: str) -> List[Candidate]:
        """All-digit queries are treated as an AppID, anything else as a name."""
        query = (query or "").strip()
        if not query:
            return []
        if query.isdigit():
            game = self.get_game_details(int(query))
            return [game] if game else []
        return self.search_games(query)
