"""Messaging app package.

Direct messages between users, typically a customer asking a provider
about a service or an upcoming booking.
"""
