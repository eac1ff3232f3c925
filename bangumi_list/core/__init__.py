"""
Couche domaine (core).

Contient les entités métier, ports (interfaces abstraites), et objets valeur.
Cette couche n'a AUCUNE dépendance vers l'infrastructure (adapters, frameworks, disque).

Sous-packages :
- entities/ : Entités du catalogue (BangumiItem, BangumiSite)
- ports/ : Interfaces abstraites des adaptateurs de fournisseurs
- value_objects/ : Objets valeur du cache (CacheKind, CacheEntry, FailedItem, FeedContent)
"""
