"""
Services module for business logic separation.

This module contains the shortener service and its background tasks,
keeping business logic separate from API endpoints and storage.
"""
