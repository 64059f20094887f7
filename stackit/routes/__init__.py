"""
StackIt Backend — API Routes Package
======================================

Route Inventory:
    - auth.py:       /api/auth/signup, /signin, /signout, /me (+ /api/signup)
    - questions.py:  /api/questions CRUD and the paginated feed
    - health.py:     GET /health

Routes stay thin: parse the request, call a service, shape the response.
"""
