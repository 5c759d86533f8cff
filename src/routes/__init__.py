"""
API Routes Package
==================
Shared route utilities split out of api.py.

Modules:
  helpers  - JSON serialization, CORS origins, insight payloads
"""
