from fastapi import APIRouter, Request
from cstore_lib.services.resolver import resolve_service
from .health import get_health

router = APIRouter()


@router.get('/')
async def api_root():
    return {
        'message': 'Welcome to C-Store API',
        'status': 'Server is running successfully!',
        'endpoints': {
            'health': '/health',
            'api': '/api',
        },
    }


@router.get('/health')
async def api_health(request: Request):
    return get_health(resolve_service(request, 'storage'))
