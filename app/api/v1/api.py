from fastapi import APIRouter
from app.api.v1.endpoints import auth, friends, expenses

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(friends.router, prefix="/friends", tags=["friends"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
