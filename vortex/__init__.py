"""Vortex catalog engine.

Modules:
- identity: series/season/episode and series/chapter inference from paths
- scanner: library walk, classification and catalog reconciliation
- enrichment: metadata provider lookups and write-back rules
- covers: first-page cover extraction for archive books
- repository: catalog, library and progress queries
- config: INI parsing and config object
"""
