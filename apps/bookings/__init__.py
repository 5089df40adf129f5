"""Bookings app package.

Owns the booking lifecycle: a customer books a provider's service for a
date, the booking waits for payment (``pending``), is confirmed when the
payment settles, and ends either ``completed`` by the provider or
``cancelled`` by a stakeholder. Bookings are never deleted.
"""
