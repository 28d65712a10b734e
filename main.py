"""
Development entry point: ``python main.py``
"""

import uvicorn
from dotenv import load_dotenv

load_dotenv()

from app.core.config import settings  # noqa: E402

if __name__ == "__main__":
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
