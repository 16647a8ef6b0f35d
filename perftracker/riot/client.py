# riot/client.py

import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

log = logging.getLogger(__name__)

# Préfixe de plateforme → région globale pour /match-v5 et /account-v1
_ROUTING_PREFIXES = (
    (("na", "br", "lan", "las", "la1", "la2", "oce", "oc1"), "americas"),
    (("kr", "jp"), "asia"),
    (("eun", "euw", "tr", "ru"), "europe"),
    (("sg", "ph", "th", "vn", "tw"), "sea"),
)


class RiotAPIError(Exception):
    """Transient origin failure: network error, timeout or non-2xx other than 404."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(Exception):
    """Raised when the origin has no such account."""
    pass


def routing_region(region: str) -> str:
    """Map a platform region (euw1, na1, kr…) to its routing group."""
    lower = region.lower()
    for prefixes, group in _ROUTING_PREFIXES:
        if lower.startswith(prefixes):
            return group
    log.warning(f"Unknown region prefix for '{region}', defaulting to 'americas'")
    return "americas"


class RiotClient:
    """Async Riot API client. 404 → None, any other failure → RiotAPIError."""

    def __init__(self, api_key: str, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"X-Riot-Token": self.api_key},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                connector=aiohttp.TCPConnector(limit=100, limit_per_host=100),
            )
        return self._session

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _request(self, url: str) -> Any:
        """
        Make a single async GET request. No in-line retry: a failed request
        is retried by the next poll.

        Args:
            url: The full URL to request

        Returns:
            JSON response from the API, or None on 404

        Raises:
            RiotAPIError: For network errors, timeouts, non-2xx statuses
                         and undecodable bodies
        """
        session = await self._get_session()
        try:
            async with session.get(url) as resp:
                if resp.status == 404:
                    log.debug(f"404 Not Found: {url}")
                    return None
                if resp.status >= 300:
                    body = await resp.text()
                    raise RiotAPIError(f"API error {resp.status}: {body[:200]}", status=resp.status)
                try:
                    return await resp.json()
                except ValueError as e:
                    raise RiotAPIError(f"Malformed JSON from {url}: {e}", status=resp.status) from e
        except aiohttp.ClientError as e:
            raise RiotAPIError(f"Network error for {url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise RiotAPIError(f"Timeout for {url}") from e

    async def get_account_by_riot_id(self, region: str, game_name: str, tag_line: str) -> Optional[Dict[str, Any]]:
        """
        Get account by Riot ID (game name + tag).
        Account-V1: GET /riot/account/v1/accounts/by-riot-id/{gameName}/{tagLine}
        Routed via region group (americas/europe/asia/sea).
        """
        group = routing_region(region)
        url = (
            f"https://{group}.api.riotgames.com"
            f"/riot/account/v1/accounts/by-riot-id/{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
        )
        return await self._request(url)

    async def resolve_puuid(self, region: str, game_name: str, tag_line: str) -> str:
        account = await self.get_account_by_riot_id(region, game_name, tag_line)
        if not account or not account.get("puuid"):
            raise NotFoundError(f"PUUID not found for {game_name}#{tag_line} in region {region}")
        return account["puuid"]

    async def get_match_ids(
        self,
        region: str,
        puuid: str,
        count: int = 25,
        queue_id: int = 0,
        start_time: int = 0,
    ) -> List[str]:
        """Get list of match IDs for a player, newest first."""
        group = routing_region(region)
        url = (
            f"https://{group}.api.riotgames.com"
            f"/lol/match/v5/matches/by-puuid/{puuid}/ids?count={count}"
        )
        if queue_id:
            url += f"&queue={queue_id}"
        if start_time > 0:
            url += f"&startTime={start_time}"
        result = await self._request(url)
        return result if result is not None else []

    async def get_match_by_id(self, region: str, match_id: str) -> Optional[Dict[str, Any]]:
        """Get detailed match information by match ID."""
        group = routing_region(region)
        url = f"https://{group}.api.riotgames.com/lol/match/v5/matches/{match_id}"
        return await self._request(url)
