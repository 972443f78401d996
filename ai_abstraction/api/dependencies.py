"""
FastAPI Dependencies

Reusable dependencies for the abstraction layer instance (stored on
app.state during startup) and the caller identity.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from ai_abstraction.core.config.constants import HEADER_USER_ID
from ai_abstraction.services.abstraction_layer import AIProviderAbstractionLayer


def get_layer(request: Request) -> AIProviderAbstractionLayer:
    """
    Retrieve the abstraction layer from application state.

    Raises:
        HTTPException(503): If the app was created without a layer
    """
    layer = getattr(request.app.state, "abstraction_layer", None)
    if layer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Abstraction layer not initialized",
        )
    return layer


def get_user_id(request: Request) -> str:
    """
    Extract the caller identity.

    Authentication happens upstream of this service; the authenticated user
    id is forwarded in the X-User-Id header.
    """
    user_id = request.headers.get(HEADER_USER_ID)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {HEADER_USER_ID} header",
        )
    return user_id


LayerDep = Annotated[AIProviderAbstractionLayer, Depends(get_layer)]
UserIdDep = Annotated[str, Depends(get_user_id)]
