import uvicorn

from quizhub.config import settings
from quizhub.database.migrate import upgrade_database
from quizhub.database.session import build_sqlalchemy_database_url_from_settings

if __name__ == "__main__":  # pragma: no cover
    upgrade_database(build_sqlalchemy_database_url_from_settings(settings))
    uvicorn.run(
        "quizhub.main:create_app",
        factory=True,
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.ENV in ["test", "dev"],
        log_level="debug" if settings.ENV in ["test", "dev"] else "info",
    )
