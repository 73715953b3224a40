"""
test_packaging.py — Los subpaquetes deben ser paquetes regulares.

setuptools (packages.find) solo incluye directorios con __init__.py;
un subpaquete namespace quedaría fuera de un wheel.
"""

import importlib

import pytest


@pytest.mark.parametrize("nombre", [
    "reportsync",
    "reportsync.publishing",
    "reportsync.utils",
])
def test_subpaquete_regular(nombre):
    paquete = importlib.import_module(nombre)
    assert paquete.__file__ is not None
    assert paquete.__file__.endswith("__init__.py")
