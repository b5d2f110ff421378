"""
Main API router.
"""

from fastapi import APIRouter
from moneybook.api import auth, categories, transactions, dashboard

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(categories.router)
api_router.include_router(transactions.router)
api_router.include_router(dashboard.router)
