"""
Ports (interfaces abstraites) définissant les contrats pour les adaptateurs.

Ports fournisseur : Contrats pour les services externes
- IFetchAdapter : Recuperation d'une donnee d'enrichissement par cle fournisseur
- FetchError : Echec transitoire signale par un adaptateur
"""

from bangumi_list.core.ports.fetchers import FetchError, IFetchAdapter

__all__ = [
    "FetchError",
    "IFetchAdapter",
]
