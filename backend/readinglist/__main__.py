"""Run the API server: ``python -m readinglist``."""

import uvicorn

from readinglist.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "readinglist.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    main()
