"""
Turns a FilteredResponse into the Starlette response sent to the frame
"""
from typing import AsyncIterator, Optional

from fastapi.responses import Response, StreamingResponse

from urlconnect.models.proxy import FilteredResponse


def to_response(
    filtered: FilteredResponse,
    body_stream: Optional[AsyncIterator[bytes]] = None,
) -> Response:
    """
    Whole bodies go out as a plain Response (Content-Length is computed for
    the bytes actually sent); streamed bodies go out chunk by chunk.
    """
    if body_stream is not None:
        response: Response = StreamingResponse(
            body_stream,
            status_code=filtered.status_code,
        )
    else:
        response = Response(
            content=filtered.body or b"",
            status_code=filtered.status_code,
        )

    for name, value in filtered.headers:
        response.headers.append(name, value)
    return response
