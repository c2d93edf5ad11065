# File: civic_portal/routers/analytics.py
# Project: civic-portal

from fastapi import APIRouter, Depends
from civic_portal.gateway.base import EntityGateway, DEFAULT_SORT
from civic_portal.gateway.session import get_gateway
from civic_portal.services.aggregation import analytics_summary

router = APIRouter(prefix="/analytics", tags=["analytics"])

@router.get("")
def analytics(gateway: EntityGateway = Depends(get_gateway)):
    return analytics_summary(gateway.issues.list(DEFAULT_SORT))
