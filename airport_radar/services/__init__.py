"""Business logic services.

Services contain all business logic and are called by routes.
Stores are injected explicitly; no service reaches for a global client.
"""
