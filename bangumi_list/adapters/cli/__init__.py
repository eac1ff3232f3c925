"""
Interface ligne de commande (Typer + Rich).

Les commandes sont definies dans commands/ et montees dans bangumi_list.main.
"""
