"""
Client bangumi.tv pour les images de couverture.

Implemente IFetchAdapter pour le cache IMAGE. L'endpoint
/v0/subjects/{id}/image repond par une redirection 302 vers l'image ;
l'URL de l'image est lue dans le header Location sans suivre la
redirection. Une redirection vers l'icone par defaut signifie que le
sujet n'a pas d'image.

Usage:
    client = BangumiClient(token="...")
    url = await client.fetch("425998")
    await client.close()
"""

from typing import Optional

import httpx
from loguru import logger

from bangumi_list.adapters.api.retry import RateLimitError, request_with_retry
from bangumi_list.core.ports.fetchers import FetchError, IFetchAdapter
from bangumi_list.core.value_objects.cache import CacheKind

NO_ICON_URL = "https://lain.bgm.tv/img/no_icon_subject.png"


class BangumiClient(IFetchAdapter[str]):
    """
    Adaptateur bangumi.tv (images de couverture).

    Attributes:
        BASE_URL: URL de base de l'API bangumi v0
    """

    BASE_URL = "https://api.bgm.tv/v0"

    def __init__(
        self,
        token: Optional[str] = None,
        user_agent: str = "bangumi-list",
        timeout: float = 5.0,
        max_attempts: int = 3,
    ) -> None:
        """
        Initialise le client bangumi.tv.

        Args:
            token: Access token bangumi (optionnel)
            user_agent: User-Agent exige par l'API bangumi
            timeout: Timeout des requetes en secondes
            max_attempts: Tentatives sur rate limiting (429)
        """
        self._token = token
        self._user_agent = user_agent
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Retourne le client HTTP, le cree si necessaire (lazy init)."""
        if self._client is None or self._client.is_closed:
            headers = {"User-Agent": self._user_agent}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                headers=headers,
                timeout=self._timeout,
                follow_redirects=False,
            )
        return self._client

    @property
    def kind(self) -> CacheKind:
        return CacheKind.IMAGE

    async def fetch(self, provider_key: str) -> Optional[str]:
        """
        Recupere l'URL de l'image large d'un sujet bangumi.

        Args:
            provider_key: Subject ID bangumi.tv

        Returns:
            URL de l'image, ou None si le sujet n'a pas d'image / n'existe pas

        Raises:
            FetchError: Erreur reseau, rate limiting persistant ou reponse inattendue
        """
        client = self._get_client()
        try:
            response = await request_with_retry(
                client,
                "GET",
                f"/subjects/{provider_key}/image",
                params={"type": "large"},
                max_attempts=self._max_attempts,
                accept_redirect=True,
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                logger.info(f"[Bangumi] Subject {provider_key} introuvable")
                return None
            raise FetchError("bangumi", provider_key, f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, RateLimitError) as e:
            raise FetchError("bangumi", provider_key, str(e) or type(e).__name__) from e

        if not response.is_redirect:
            raise FetchError(
                "bangumi", provider_key, f"redirection attendue, recu HTTP {response.status_code}"
            )

        image_url = response.headers.get("location") or NO_ICON_URL
        if image_url == NO_ICON_URL:
            logger.info(f"[Bangumi] Pas d'image valide pour le subject {provider_key}")
            return None
        return image_url

    async def close(self) -> None:
        """Ferme le client HTTP."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
