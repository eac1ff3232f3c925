"""
Couche infrastructure de bangumi-list.

- persistence/ : Cache d'enrichissement persiste en JSON (un fichier par type)
"""
