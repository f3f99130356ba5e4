"""
Development server runner
"""

import uvicorn
from app.core.config import settings

if __name__ == "__main__":
    # reload and workers are mutually exclusive
    if settings.DEBUG:
        uvicorn.run(
            "app.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=True,
            access_log=True,
            log_level=settings.LOG_LEVEL.lower()
        )
    else:
        # Workers only share realtime events when REALTIME_REDIS_FANOUT is on
        uvicorn.run(
            "app.main:app",
            host=settings.HOST,
            port=settings.PORT,
            workers=settings.WORKERS,
            access_log=True,
            log_level=settings.LOG_LEVEL.lower()
        )
