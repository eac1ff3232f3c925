"""
Configuration du logging de bangumi-list via loguru.

Les messages du sous-systeme d'enrichissement sont prefixes par leur
composant ([Cache], [Retry], [RSS], [Bangumi], [Bilibili]). Un patcher
extrait ce prefixe dans record["extra"]["component"] :
- Sortie console : colonne composant, niveau configurable
- Sortie fichier : JSON avec rotation, filtrable par composant
"""

import re
import sys

from loguru import logger

from .config import Settings

_COMPONENT_PATTERN = re.compile(r"^\[(\w+)\]")


def tag_component(record: dict) -> None:
    """Renseigne extra["component"] depuis le prefixe du message, sinon le module."""
    if "component" in record["extra"]:
        return
    match = _COMPONENT_PATTERN.match(record["message"])
    if match:
        component = match.group(1).lower()
    else:
        component = (record["name"] or "app").rsplit(".", 1)[-1]
    record["extra"]["component"] = component


def configure_logging(settings: Settings) -> None:
    """Configure le logging a partir des parametres de l'application.

    Args :
        settings : Parametres (log_level, log_file, log_rotation_size,
                   log_retention_count)

    Les details des fournisseurs et du cache (tentatives, entrees ignorees)
    sont emis en DEBUG : seul le fichier les capture avec le niveau par defaut.
    """
    logger.remove()
    logger.configure(patcher=tag_component)

    logger.add(
        sys.stderr,
        level=settings.log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<magenta>{extra[component]: <9}</magenta> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    log_file = settings.log_file
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level="DEBUG",
        format="{message}",
        serialize=True,
        rotation=settings.log_rotation_size,
        retention=settings.log_retention_count,
        compression="zip",
        enqueue=True,
    )

    logger.debug("Logging configure", log_file=str(log_file), level=settings.log_level)
