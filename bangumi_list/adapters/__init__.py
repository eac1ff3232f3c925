"""
Couche adaptateurs.

Les adaptateurs implementent les ports definis dans core/ports/ et fournissent
les implementations concretes pour les systemes externes.

Sous-packages :
- api/ : Clients des fournisseurs (bangumi.tv, bilibili, Mikan)
- cli/ : Interface ligne de commande (Typer)

Chaque adaptateur depend de core/ mais core/ ne depend jamais des adaptateurs.
"""
