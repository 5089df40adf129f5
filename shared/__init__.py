"""Shared kernel for the campus services marketplace.

Holds the pieces every domain app relies on: the domain error taxonomy,
domain events with the in-process message bus, the Django unit of work and
the DRF infrastructure (exception handler, pagination, row locking).
"""
