"""API v1 main router
모든 엔드포인트를 통합하여 하나의 API 라우터로 제공
"""

from fastapi import APIRouter
from janmap.api.v1.endpoints import shops, stations

# API v1 main router
api_router = APIRouter()

api_router.include_router(shops.router, prefix="/shops", tags=["shops"])

api_router.include_router(stations.router, prefix="/stations", tags=["stations"])
