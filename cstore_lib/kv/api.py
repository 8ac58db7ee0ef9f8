from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
import logging

from cstore_lib.services.resolver import resolve_service

router = APIRouter()
logger = logging.getLogger(__name__)

_ABSENT = object()

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded'


class SetValuePayload(BaseModel):
    value: Any


async def read_set_value(request: Request) -> Any:
    """Extract `value` from a JSON or URL-encoded request body.

    Form fields arrive as strings. A body without `value` fails validation.
    """
    content_type = request.headers.get('content-type', '')
    if content_type.startswith(FORM_CONTENT_TYPE):
        form = await request.form()
        data = dict(form)
    else:
        try:
            data = await request.json()
        except ValueError:
            raise HTTPException(status_code=422, detail='Request body is not valid JSON')
    try:
        return SetValuePayload.model_validate(data).value
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))


# Handlers are plain functions: FastAPI runs them in its threadpool, which
# is where the storage backends expect to block on I/O.

@router.get('')
def api_list_namespaces(request: Request):
    directory = resolve_service(request, 'namespace_directory')
    namespaces = directory.namespaces()
    logger.debug("Listing %d namespaces", len(namespaces))
    return {'namespaces': namespaces, 'count': len(namespaces)}


@router.get('/{namespace}')
def api_get_namespace(request: Request, namespace: str):
    storage = resolve_service(request, 'storage')
    values = storage.get(namespace)
    return {'namespace': namespace, 'values': values, 'count': len(values)}


@router.delete('/{namespace}')
def api_delete_namespace(request: Request, namespace: str):
    storage = resolve_service(request, 'storage')
    storage.delete_namespace(namespace)
    logger.debug("Deleted namespace %s", namespace)
    return {'message': f"Namespace '{namespace}' deleted successfully"}


@router.get('/{namespace}/{key}')
def api_get_value(request: Request, namespace: str, key: str):
    storage = resolve_service(request, 'storage')
    value = storage.get(namespace, key, default=_ABSENT)
    if value is _ABSENT:
        # Absent values serialize to an empty object, not to {"value": null}.
        return {}
    return {'value': value}


@router.post('/{namespace}/{key}')
def api_set_value(request: Request, namespace: str, key: str, value: Any = Depends(read_set_value)):
    storage = resolve_service(request, 'storage')
    storage.set(namespace, key, value)
    return {'message': 'Value set successfully'}


@router.delete('/{namespace}/{key}')
def api_delete_value(request: Request, namespace: str, key: str):
    storage = resolve_service(request, 'storage')
    storage.delete(namespace, key)
    return {'message': 'Value deleted successfully'}
