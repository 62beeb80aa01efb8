# app/api/router.py
from fastapi import APIRouter
from app.api import routes_credit_payments

api_router = APIRouter()

# Pharmacy credit billing
api_router.include_router(routes_credit_payments.router)
