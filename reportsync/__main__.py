"""
__main__.py — Permite ejecutar reportsync como módulo.

    python -m reportsync upload
"""

from reportsync.cli import main

if __name__ == "__main__":
    main()
