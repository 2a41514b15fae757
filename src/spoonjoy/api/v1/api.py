from fastapi import APIRouter

from spoonjoy.api.v1.endpoints import auth, recipe, step, cookbook, account, shopping, photos

api_router = APIRouter()

api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(recipe.router, prefix="/recipes", tags=["recipes"])
api_router.include_router(step.router, prefix="/recipes", tags=["steps"])
api_router.include_router(cookbook.router, prefix="/cookbooks", tags=["cookbooks"])
api_router.include_router(account.router, prefix="/account", tags=["account"])
api_router.include_router(shopping.router, prefix="/shopping-list", tags=["shopping"])
api_router.include_router(photos.router, prefix="/photos", tags=["photos"])
