"""Run the shortlink API with uvicorn: ``python -m shortlink``."""

import uvicorn

from shortlink.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("shortlink.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
