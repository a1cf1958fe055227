"""
Fetchr — API Routes Package
============================

Route Inventory:
    - resource.py:  GET  /api/resource/<name>;<matrix>?<query>   (read)
                    POST /api/resource                          (g0 batch entry)
    - health.py:    GET  /health
"""
