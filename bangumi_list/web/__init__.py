"""
API HTTP de bangumi-list (FastAPI, JSON uniquement).

- app.py : factory de l'application et cycle de vie du contexte
- deps.py : dependances partagees des routes
- routes/ : routes du catalogue et du cache
"""
