"""
Static file serving for the map frontend.
"""

from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException


class SPAStaticFiles(StaticFiles):
  """Serve files from the frontend build, and index.html for any unknown path."""

  async def get_response(self, path: str, scope):
    try:
      response = await super().get_response(path, scope)
    except HTTPException as exc:
      if exc.status_code != 404:
        raise
      return await super().get_response("index.html", scope)
    if response.status_code == 404:
      return await super().get_response("index.html", scope)
    return response
