"""Reviews app package.

Customers rate a service once its booking is completed. Published
reviews feed the average rating shown on services and provider profiles.
"""
