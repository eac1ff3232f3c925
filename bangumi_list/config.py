"""
Configuration de l'application via pydantic-settings.

La configuration est chargée depuis les variables d'environnement avec le préfixe BANGUMI_,
et peut optionnellement être fournie via un fichier .env.

Le token bangumi.tv et le proxy Mikan sont optionnels.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bangumi_list.core.value_objects.cache import CacheKind

# Trouver le fichier .env à la racine du projet (parent de bangumi_list/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

DEFAULT_DATA_URL = "https://unpkg.com/bangumi-data@0.3/dist/data.json"


class Settings(BaseSettings):
    """Paramètres de l'application avec support des variables d'environnement.

    Tous les paramètres peuvent être surchargés via des variables d'environnement
    avec le préfixe BANGUMI_.
    Exemple : BANGUMI_FEED_PROXY=http://127.0.0.1:7890

    Les chemins sont automatiquement étendus (~ -> répertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="BANGUMI_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Chemins (avec expansion ~)
    data_dir: Path = Field(default=Path(".run"))
    data_file: str = Field(default="data.json")

    # Catalogue bangumi-data
    data_url: str = Field(default=DEFAULT_DATA_URL)

    # Fournisseurs
    bangumi_api_token: Optional[str] = Field(default=None)
    user_agent: str = Field(default="bangumi-list/0.3 (https://github.com/bangumi-list)")
    http_timeout: float = Field(default=5.0, gt=0)
    feed_timeout: float = Field(default=30.0, gt=0)
    feed_proxy: Optional[str] = Field(default=None)
    feed_max_retries: int = Field(default=3, ge=1)
    feed_base_delay: float = Field(default=3.0, ge=0)
    feed_max_concurrent: int = Field(default=1, ge=1)

    # Durées de vie du cache
    image_ttl_hours: float = Field(default=7 * 24, gt=0)
    video_ttl_hours: float = Field(default=7 * 24, gt=0)
    feed_ttl_hours: float = Field(default=6, gt=0)

    # Rafraîchissement
    refresh_chunk_size: int = Field(default=2, ge=2, le=5)
    refresh_chunk_delay: float = Field(default=2.0, ge=0)
    refresh_cron_hour: int = Field(default=2, ge=0, le=23)
    refresh_cron_minute: int = Field(default=0, ge=0, le=59)
    timezone: str = Field(default="Asia/Shanghai")
    startup_refresh_delay: float = Field(default=1.0, ge=0)

    # Retry des échecs
    retry_interval: float = Field(default=60.0, gt=0)
    retry_max_attempts: int = Field(default=5, ge=0)
    retry_item_delay: float = Field(default=1.0, ge=0)

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de rétention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path(".run/logs/bangumi-list.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("data_dir", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Étend ~ vers le répertoire home dans les chemins."""
        return Path(v).expanduser()

    @property
    def data_path(self) -> Path:
        """Chemin du fichier catalogue bangumi-data."""
        return self.data_dir / self.data_file

    @property
    def cache_ttls(self) -> dict[CacheKind, float]:
        """Durée de vie du cache en secondes, par type de donnée."""
        return {
            CacheKind.IMAGE: self.image_ttl_hours * 3600,
            CacheKind.VIDEO: self.video_ttl_hours * 3600,
            CacheKind.FEED: self.feed_ttl_hours * 3600,
        }
