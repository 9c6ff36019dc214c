from fastapi import APIRouter
from dashboard.api import auth, lists

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(lists.router, tags=["Lists"])
