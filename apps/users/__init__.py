"""Users app package.

Defines the custom user model keyed on e-mail with a marketplace role
(customer, provider or admin), JWT registration and login, profile
endpoints and the ``Caller`` value passed into every service function.
Use ``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout
the project.
"""
