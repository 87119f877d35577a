"""
Application layer - request parsing and response DTOs.

Sits between the HTTP routes and the core domain:
1. Coerces loosely typed request input into domain objects
2. Defines the response envelope shared by all endpoints
"""
