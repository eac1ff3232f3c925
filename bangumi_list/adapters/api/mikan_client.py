"""
Client Mikan Project pour les flux RSS de releases.

Implemente IFetchAdapter pour le cache FEED. Specificites :
- Mikan renvoie parfois une page HTML avec une redirection JavaScript
  (window.location.replace) au lieu du XML : la redirection est suivie.
- Tentatives internes avec backoff exponentiel (x3 sur rate limiting).
- Nombre de requetes simultanees limite (Mikan bannit les rafales).
- Proxy HTTP optionnel.

Contrairement aux autres adaptateurs, un flux vide n'est pas "rien" :
un flux valide sans item est une valeur. Seul un 404 est un resultat vide.
"""

import asyncio
import re
from typing import Optional
from urllib.parse import urljoin
from xml.etree import ElementTree

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from bangumi_list.adapters.api.retry import RateLimitError, raise_for_rate_limit, wait_backoff
from bangumi_list.core.ports.fetchers import FetchError, IFetchAdapter
from bangumi_list.core.value_objects.cache import (
    CacheKind,
    FeedContent,
    FeedEnclosure,
    FeedItem,
)

MIKAN_URL_BASE = "https://mikanani.me"

_JS_REDIRECT_PATTERN = re.compile(r"window\.location\.replace\('([^']+)'\)")

_BROWSER_HEADERS = {
    "accept-language": "zh-HK,zh;q=0.9,en-US;q=0.8,en;q=0.7,zh-CN;q=0.6",
    "cache-control": "no-cache",
    "pragma": "no-cache",
    "user-agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36"
    ),
}


class FeedFormatError(Exception):
    """La reponse de Mikan n'est pas un flux RSS exploitable."""


def mikan_rss_url(mikan_id: str) -> str:
    """URL du flux RSS Mikan d'un bangumi."""
    if not mikan_id or not isinstance(mikan_id, str):
        raise ValueError(f"mikan id invalide: {mikan_id!r}")
    return f"{MIKAN_URL_BASE}/RSS/Bangumi?bangumiId={mikan_id}"


def _text(element, tag: str) -> str:
    child = element.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def parse_feed(payload: bytes) -> FeedContent:
    """
    Parse un document RSS 2.0 en FeedContent.

    Args:
        payload: Corps de la reponse (XML brut)

    Returns:
        FeedContent (items eventuellement vides)

    Raises:
        FeedFormatError: Si le document n'est pas du RSS valide
    """
    try:
        root = ElementTree.fromstring(payload)
    except ElementTree.ParseError as e:
        raise FeedFormatError(f"XML invalide: {e}") from e

    channel = root.find("channel") if root.tag == "rss" else None
    if channel is None:
        raise FeedFormatError("Format RSS invalide (rss/channel absent)")

    items = []
    for node in channel.findall("item"):
        enclosure_node = node.find("enclosure")
        enclosure = None
        if enclosure_node is not None:
            enclosure = FeedEnclosure(
                url=enclosure_node.get("url", ""),
                type=enclosure_node.get("type", ""),
                length=enclosure_node.get("length", ""),
            )
        items.append(
            FeedItem(
                title=_text(node, "title"),
                description=_text(node, "description"),
                link=_text(node, "link"),
                pub_date=_text(node, "pubDate"),
                guid=_text(node, "guid") or None,
                enclosure=enclosure,
            )
        )

    return FeedContent(
        title=_text(channel, "title"),
        description=_text(channel, "description"),
        link=_text(channel, "link"),
        items=tuple(items),
    )


class _FeedNotFound(Exception):
    """Mikan ne connait pas ce bangumi (404)."""


class MikanClient(IFetchAdapter[FeedContent]):
    """
    Adaptateur Mikan (flux RSS des releases d'un bangumi).

    Example:
        client = MikanClient(max_retries=3, base_delay=3.0)
        feed = await client.fetch("3310")
        await client.close()
    """

    def __init__(
        self,
        timeout: float = 30.0,
        proxy: Optional[str] = None,
        max_retries: int = 3,
        base_delay: float = 3.0,
        max_concurrent: int = 1,
    ) -> None:
        """
        Initialise le client Mikan.

        Args:
            timeout: Timeout des requetes en secondes
            proxy: URL du proxy HTTP (ex: http://127.0.0.1:7890), optionnel
            max_retries: Nombre de tentatives par flux
            base_delay: Delai de base du backoff exponentiel (secondes)
            max_concurrent: Nombre maximum de requetes simultanees
        """
        self._timeout = timeout
        self._proxy = proxy
        self._max_retries = max(1, max_retries)
        self._base_delay = base_delay
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent))
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Retourne le client HTTP, le cree si necessaire (lazy init)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                proxy=self._proxy,
                follow_redirects=True,
                max_redirects=5,
                headers=_BROWSER_HEADERS,
            )
        return self._client

    @property
    def kind(self) -> CacheKind:
        return CacheKind.FEED

    async def fetch(self, provider_key: str) -> Optional[FeedContent]:
        """
        Recupere et parse le flux RSS d'un bangumi Mikan.

        Args:
            provider_key: bangumiId Mikan

        Returns:
            FeedContent, ou None si Mikan ne connait pas ce bangumi

        Raises:
            FetchError: Si toutes les tentatives ont echoue
        """
        rss_url = mikan_rss_url(provider_key)
        async with self._semaphore:
            try:
                async for attempt in AsyncRetrying(
                    retry=retry_if_exception_type(
                        (httpx.HTTPError, RateLimitError, FeedFormatError)
                    ),
                    wait=wait_backoff(self._base_delay),
                    stop=stop_after_attempt(self._max_retries),
                    reraise=False,
                ):
                    with attempt:
                        logger.debug(
                            f"[RSS] Tentative {attempt.retry_state.attempt_number}/"
                            f"{self._max_retries} - {rss_url}"
                        )
                        return await self._perform_request(rss_url, provider_key)
            except _FeedNotFound:
                logger.info(f"[RSS] Flux introuvable pour le bangumi Mikan {provider_key}")
                return None
            except RetryError as e:
                cause = e.last_attempt.exception()
                logger.warning(
                    f"[RSS] Echec du flux {rss_url} apres {self._max_retries} tentatives: {cause!r}"
                )
                raise FetchError("mikan", provider_key, str(cause) or type(cause).__name__) from cause
        return None

    async def _perform_request(self, rss_url: str, mikan_id: str) -> FeedContent:
        """Une tentative : requete, resolution de la redirection JS, parsing."""
        client = self._get_client()
        response = await client.get(
            rss_url,
            headers={
                "accept": "application/rss+xml, application/xml, text/xml, text/html;q=0.8",
                "referer": f"{MIKAN_URL_BASE}/Home/Bangumi/{mikan_id}",
            },
        )
        if response.status_code == 404:
            raise _FeedNotFound(mikan_id)
        raise_for_rate_limit(response)
        response.raise_for_status()

        payload = response.content
        if b"window.location.replace" in payload:
            match = _JS_REDIRECT_PATTERN.search(response.text)
            if not match:
                raise FeedFormatError("URL de redirection JavaScript introuvable")
            redirect_url = urljoin(str(response.url), match.group(1))
            logger.debug(f"[RSS] Redirection JavaScript vers {redirect_url}")

            redirected = await client.get(
                redirect_url,
                headers={
                    "accept": "application/rss+xml, application/xml, text/xml",
                    "referer": rss_url,
                },
            )
            raise_for_rate_limit(redirected)
            redirected.raise_for_status()
            payload = redirected.content
            if b"<html" in payload or b"window.location.replace" in payload:
                raise FeedFormatError("La redirection renvoie encore du HTML")

        return parse_feed(payload)

    async def close(self) -> None:
        """Ferme le client HTTP."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
