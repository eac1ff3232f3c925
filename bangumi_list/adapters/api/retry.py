"""
Mecanismes de retry pour les appels aux fournisseurs.

- request_with_retry : requete httpx relancee sur 429 (Too Many Requests)
  avec backoff exponentiel et jitter.
- wait_backoff : attente exponentielle deterministe (base * 2^(n-1)),
  triplee quand la derniere erreur est un rate limiting. Utilisee par le
  client Mikan pour ses tentatives internes.

Usage:
    @with_retry(max_attempts=5, max_wait=60)
    async def my_api_call():
        ...

    response = await request_with_retry(client, "GET", url)
"""

from typing import Optional

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)


class RateLimitError(Exception):
    """
    Exception levee quand un fournisseur retourne 429 Too Many Requests.

    Attributes:
        retry_after: Nombre de secondes a attendre (depuis le header Retry-After),
                     ou None si non specifie.
    """

    def __init__(self, retry_after: Optional[int] = None) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limited. Retry after: {retry_after}s")


def with_retry(max_attempts: int = 5, max_wait: int = 60):
    """
    Decorateur pour relancer sur RateLimitError avec backoff exponentiel.

    Args:
        max_attempts: Nombre maximum de tentatives (defaut: 5)
        max_wait: Delai maximum entre les tentatives en secondes (defaut: 60)

    Returns:
        Decorateur a appliquer sur une fonction async
    """
    return retry(
        retry=retry_if_exception_type(RateLimitError),
        wait=wait_random_exponential(multiplier=1, min=1, max=max_wait),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    )


class wait_backoff:
    """
    Strategie d'attente tenacity : base_delay * 2^(tentative-1).

    Le delai est multiplie par rate_limit_factor si la tentative
    precedente a echoue sur un RateLimitError.

    Example:
        AsyncRetrying(wait=wait_backoff(3.0), stop=stop_after_attempt(3))
        # attentes: 3s, 6s (18s si la 2e tentative a ete limitee)
    """

    def __init__(self, base_delay: float, rate_limit_factor: float = 3.0) -> None:
        self.base_delay = base_delay
        self.rate_limit_factor = rate_limit_factor

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self.base_delay * (2 ** (retry_state.attempt_number - 1))
        outcome = retry_state.outcome
        if outcome is not None and isinstance(outcome.exception(), RateLimitError):
            delay *= self.rate_limit_factor
        return delay


def raise_for_rate_limit(response: httpx.Response) -> None:
    """Convertit une reponse 429 en RateLimitError."""
    if response.status_code == 429:
        retry_after_header = response.headers.get("Retry-After")
        retry_after = (
            int(retry_after_header)
            if retry_after_header and retry_after_header.isdigit()
            else None
        )
        raise RateLimitError(retry_after)


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_attempts: int = 5,
    max_wait: int = 60,
    accept_redirect: bool = False,
    **kwargs,
) -> httpx.Response:
    """
    Execute une requete HTTP avec retry automatique sur 429.

    Les autres erreurs HTTP (4xx, 5xx) sont propagees immediatement.

    Args:
        client: Client httpx async a utiliser
        method: Methode HTTP (GET, POST, etc.)
        url: URL a appeler
        max_attempts: Nombre maximum de tentatives (defaut: 5)
        max_wait: Delai maximum entre tentatives en secondes
        accept_redirect: Si True, une reponse 3xx est retournee telle quelle
        **kwargs: Arguments supplementaires passes a client.request()

    Returns:
        httpx.Response en cas de succes

    Raises:
        RateLimitError: Si 429 apres epuisement des tentatives
        httpx.HTTPStatusError: Pour les autres erreurs HTTP
    """

    @with_retry(max_attempts=max_attempts, max_wait=max_wait)
    async def _do_request() -> httpx.Response:
        response = await client.request(method, url, **kwargs)
        raise_for_rate_limit(response)
        if accept_redirect and response.is_redirect:
            return response
        response.raise_for_status()
        return response

    return await _do_request()
