import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from shortlinks_app.dependencies import get_resolver
from shortlinks_app.exceptions import LinkNotFoundError, StoreError
from shortlinks_app.services.resolver import LinkResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["redirect"])


@router.get("/{token}")
async def redirect_to_long_url(
    token: str,
    resolver: LinkResolver = Depends(get_resolver)
):
    """
    Redirect to the destination of a short link.

    - 308 Permanent Redirect when the token resolves
    - 404 when it is in neither the database nor the CSV links
    - 500 when the database lookup fails

    Click counting happens in the background, the redirect never waits for it.
    """
    try:
        long_url = await resolver.resolve(token)
    except LinkNotFoundError:
        return PlainTextResponse("Short link not found", status_code=status.HTTP_404_NOT_FOUND)
    except StoreError as e:
        logger.warning(f"Database error for token {token}: {e}")
        return PlainTextResponse("Internal server error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return RedirectResponse(url=long_url, status_code=status.HTTP_308_PERMANENT_REDIRECT)
