"""School Portal package.

Feature modules (roster, attendance, leave, dashboard) each carry a domain model,
a repository interface, a MySQL repository, a service and a thin Flask controller.
"""
