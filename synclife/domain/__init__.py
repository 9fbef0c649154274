"""
Domain Layer - Entidades, store en memoria y servicios puros.
"""
