"""
reportsync — Publica reportes de test en un repositorio Git remoto.

Este paquete contiene:
- publishing/ → Protocolo de publicación (clone/open, remoto, commit, push)
- utils/      → Utilidades compartidas (logging)
- config.py   → Carga de config.yaml + .env

Uso:
    python -m reportsync upload
    python -m reportsync config --show
"""

__version__ = "1.0.0"
