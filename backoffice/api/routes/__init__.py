from fastapi import FastAPI

from . import admins, auth, health, materials, notifications, products, stores


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the FastAPI application."""
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(admins.router)
    app.include_router(materials.router)
    app.include_router(stores.router)
    app.include_router(products.router)
    app.include_router(notifications.router)
