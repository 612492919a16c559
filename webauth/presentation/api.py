from fastapi import APIRouter

from webauth.presentation.routers.v1.signup import router as signup_router
from webauth.presentation.routes.health import router as health_router

api = APIRouter()
api.include_router(health_router)

# Add all v1 routers here
routers = (signup_router,)
for router in routers:
    api.include_router(router, prefix="/v1")
