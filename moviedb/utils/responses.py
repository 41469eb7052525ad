from typing import Any

from fastapi.responses import JSONResponse

from moviedb.schemas.common import ActionError


def action_response(result: Any) -> Any:
    """
    Return a service result from a route.

    An ActionError becomes {"error": "..."} with the status of its kind;
    anything else is returned as-is for the route's response_model.
    """
    if isinstance(result, ActionError):
        return JSONResponse(status_code=result.kind.status_code, content=result.model_dump())
    return result
