"""HTTP controllers, one APIRouter per resource.

Controllers are intentionally thin: they accept requests, delegate to
services, and return the service result for FastAPI to serialize.
"""

from . import (
    addresses,
    auth,
    courses,
    enseignants,
    familles,
    missions,
    offers,
    options,
    payments,
    reports,
    resources,
    users,
)

ROUTERS = [
    auth.router,
    users.router,
    familles.router,
    enseignants.router,
    missions.router,
    courses.router,
    offers.router,
    options.router,
    reports.router,
    payments.router,
    addresses.router,
    resources.router,
]
