"""Services app package.

Catalogue of what students offer each other: categories and the services
providers list under them, with search, price filters, sorting and a
rating derived from published reviews.
"""
