"""
Couche application du sous-systeme d'enrichissement.

- catalog : index en memoire du catalogue bangumi-data
- orchestrator : passes de rafraichissement du cache (par lots)
- retry_engine : retraitement periodique des echecs
- enrichment_view : superposition du cache aux entrees (lecture seule)
- scheduler : jobs APScheduler (quotidien, demarrage)
- context : cycle de vie de l'ensemble (init / shutdown)
"""
