"""
publishing/ — Todo lo relacionado con publicar reportes.

Módulos:
- report_uploader.py → Sincroniza el directorio de reportes con el remoto
- credentials.py     → Usuario + token para el transporte HTTP de Git
"""
