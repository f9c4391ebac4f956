from fastapi import APIRouter, Depends

from app.api.endpoints import auth, communities, groups, health, posts, users
from app.core.rate_limiter import limit_by_ip, limit_by_user

api_router = APIRouter()

public = [Depends(limit_by_ip)]
authenticated = [Depends(limit_by_user)]

api_router.include_router(health.router, dependencies=public)
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"], dependencies=public)
api_router.include_router(communities.router, prefix="/communities", tags=["Communities"], dependencies=authenticated)
api_router.include_router(groups.router, prefix="/groups", tags=["Groups"], dependencies=authenticated)
api_router.include_router(posts.router, prefix="/posts", tags=["Posts"], dependencies=authenticated)
api_router.include_router(users.router, prefix="/users", tags=["Users"], dependencies=authenticated)
