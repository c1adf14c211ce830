import uvicorn

from app.Core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    # auto-reload only in dev
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.env == "dev",
        log_level=settings.log_level.lower(),
    )
