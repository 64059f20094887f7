"""
StackIt Backend — Services Layer
==================================

Business rules between the HTTP routes and the database.

Service Inventory:
    - TagNormalizer:       cleans tag lists; connect-or-create on the tags table
    - QuestionRepository:  question CRUD, ownership checks, the paginated feed
    - UserService:         signup and credential checks

Services raise StackItError subclasses; the handlers in main.py turn them
into HTTP responses.
"""
