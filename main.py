"""
RoninRide Document Store
========================
Serves the shared session documents that rider and driver clients poll.
Run with: uvicorn main:app --reload
"""

import uvicorn

from roninride.api.app import create_app
from roninride.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
