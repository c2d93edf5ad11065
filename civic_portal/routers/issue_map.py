# File: civic_portal/routers/issue_map.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from civic_portal.gateway.base import EntityGateway, DEFAULT_SORT
from civic_portal.gateway.session import get_gateway
from civic_portal.services.map_layers import map_view

router = APIRouter(prefix="/map", tags=["map"])

@router.get("")
def issue_map(category: Optional[str] = Query(default=None),
              gateway: EntityGateway = Depends(get_gateway)):
    return map_view(gateway.issues.list(DEFAULT_SORT), category)
