"""
bangumi-list - Catalogue de diffusion anime enrichi par fournisseurs externes.

Ce package maintient un cache persistant des donnees auxiliaires de chaque
entree du catalogue bangumi-data (image de couverture, PV bilibili, flux
de releases Mikan) et orchestre leur rafraichissement.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entités, ports, objets valeur)
- services/ : Couche application (orchestration, retry, vue d'enrichissement)
- adapters/ : Couche infrastructure (CLI, clients API)
- infrastructure/ : Persistance du cache sur disque
- web/ : API HTTP (FastAPI)
"""

__version__ = "0.3.0"
