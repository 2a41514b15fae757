from fastapi import APIRouter, Depends, Response
from fastapi.concurrency import run_in_threadpool

from spoonjoy.core.storage import InvalidStorageKey, PhotoStore, get_photo_store
from spoonjoy.domains.account.exceptions import PhotoNotFoundException
from spoonjoy.util.docs import create_error_response

router = APIRouter()

PHOTO_HEADERS = {
    "Cache-Control": "public, max-age=31536000, immutable",
    "X-Content-Type-Options": "nosniff",
    "Content-Security-Policy": "default-src 'none'; sandbox",
}


@router.get(
    "/{key:path}",
    status_code=200,
    summary="Serve an uploaded photo",
    response_class=Response,
    responses=create_error_response(PhotoNotFoundException),
)
async def get_photo(key: str, store: PhotoStore = Depends(get_photo_store)):
    try:
        stored = await run_in_threadpool(store.get, key)
    except InvalidStorageKey:
        raise PhotoNotFoundException()

    if stored is None:
        raise PhotoNotFoundException()

    return Response(content=stored.data, media_type=stored.content_type, headers=PHOTO_HEADERS)
