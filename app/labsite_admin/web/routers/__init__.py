from fastapi import APIRouter

from labsite_admin.web.routers.entities import router as entities_router
from labsite_admin.web.routers.health import router as health_router
from labsite_admin.web.routers.imports import router as imports_router
from labsite_admin.web.routers.session import router as session_router
from labsite_admin.web.routers.site import router as site_router


router = APIRouter()
router.include_router(health_router)
router.include_router(session_router)
router.include_router(imports_router)
router.include_router(site_router)
# Catch-all /{entity} paths go last.
router.include_router(entities_router)
