"""
Product API - Routes Package
=============================

Route Inventory:
    - products.py:  /api/v1/products and /api/v1/products/{id}
    - health.py:    GET /api/v1/health
    - deps.py:      Shared FastAPI dependencies (settings, repository)

Routes handle HTTP concerns only: extract path/query/body, call the
repository, wrap the result in an Envelope. Store access lives in
product_api.repositories.
"""
