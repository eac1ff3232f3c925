"""
Client bilibili pour les PV (videos promotionnelles).

Implemente IFetchAdapter pour le cache VIDEO en deux etapes :
1. media_id -> season_id via l'API pgc/review de bilibili
2. season_id -> bvid du premier episode de la section "PV" via biliplus

Les deux etapes restent internes : pour l'orchestrateur c'est un seul
appel fetch() avec un seul resultat.
"""

from typing import Any, Optional

import httpx
from loguru import logger

from bangumi_list.adapters.api.retry import RateLimitError, request_with_retry
from bangumi_list.core.ports.fetchers import FetchError, IFetchAdapter
from bangumi_list.core.value_objects.cache import CacheKind

# Code metier "ressource introuvable" (bilibili et biliplus)
NOT_FOUND_CODE = -404


class BilibiliClient(IFetchAdapter[str]):
    """
    Adaptateur bilibili (bvid du PV d'une saison).

    Attributes:
        BILIBILI_API_BASE: API publique bilibili
        BILIPLUS_API_BASE: API biliplus (sections d'une saison)

    Example:
        client = BilibiliClient()
        bvid = await client.fetch("28339735")
        if bvid:
            print(embed_link(bvid))
        await client.close()
    """

    BILIBILI_API_BASE = "https://api.bilibili.com"
    BILIPLUS_API_BASE = "https://www.biliplus.com/api/bangumi"

    def __init__(
        self,
        user_agent: str = "bangumi-list",
        timeout: float = 5.0,
        max_attempts: int = 3,
    ) -> None:
        self._user_agent = user_agent
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Retourne le client HTTP, le cree si necessaire (lazy init)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self._user_agent},
                timeout=self._timeout,
            )
        return self._client

    @property
    def kind(self) -> CacheKind:
        return CacheKind.VIDEO

    async def _get_json(self, url: str, params: dict[str, Any], key: str) -> dict[str, Any]:
        """GET JSON avec conversion des erreurs transitoires en FetchError."""
        try:
            response = await request_with_retry(
                self._get_client(),
                "GET",
                url,
                params=params,
                max_attempts=self._max_attempts,
            )
            return response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError("bilibili", key, f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, RateLimitError, ValueError) as e:
            raise FetchError("bilibili", key, str(e) or type(e).__name__) from e

    @staticmethod
    def _check_code(data: dict[str, Any], key: str) -> bool:
        """
        Interprete le code metier d'une reponse bilibili ou biliplus.

        Returns:
            True si code == 0, False si la ressource est introuvable (-404)

        Raises:
            FetchError: Pour tout autre code (-412 anti-crawl, -509 rate limit...)
        """
        code = data.get("code")
        if code == 0:
            return True
        if code == NOT_FOUND_CODE:
            logger.debug(f"[Bilibili] {key} introuvable: {data.get('message')}")
            return False
        raise FetchError("bilibili", key, f"code={code} {data.get('message') or ''}".strip())

    async def fetch_season_id(self, media_id: str) -> Optional[int]:
        """
        Resout le season_id bilibili d'un media_id.

        Returns:
            season_id, ou None si bilibili ne connait pas ce media
        """
        data = await self._get_json(
            f"{self.BILIBILI_API_BASE}/pgc/review/user",
            {"media_id": media_id},
            media_id,
        )
        if not self._check_code(data, media_id):
            return None
        media = (data.get("result") or {}).get("media") or {}
        return media.get("season_id") or None

    async def fetch_pv_bvid(self, season_id: int, media_id: str = "") -> Optional[str]:
        """
        Recupere le bvid du premier PV d'une saison.

        Returns:
            bvid, ou None si la saison n'a pas de section PV
        """
        data = await self._get_json(
            self.BILIPLUS_API_BASE,
            {"season": season_id},
            media_id or str(season_id),
        )
        if not self._check_code(data, media_id or str(season_id)):
            return None
        sections = (data.get("result") or {}).get("section") or []
        for section in sections:
            if "PV" not in (section.get("title") or ""):
                continue
            episodes = section.get("episodes") or []
            if episodes and episodes[0].get("bvid"):
                return episodes[0]["bvid"]
            break
        return None

    async def fetch(self, provider_key: str) -> Optional[str]:
        """
        Recupere le bvid du PV d'un media bilibili.

        Args:
            provider_key: media_id bilibili

        Returns:
            bvid du PV, ou None si pas de saison ou pas de PV

        Raises:
            FetchError: En cas d'echec transitoire d'une des deux etapes
        """
        season_id = await self.fetch_season_id(provider_key)
        if season_id is None:
            return None
        bvid = await self.fetch_pv_bvid(season_id, provider_key)
        if bvid is None:
            logger.info(f"[Bilibili] Pas de PV pour le media {provider_key} (season {season_id})")
        return bvid

    async def close(self) -> None:
        """Ferme le client HTTP."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
