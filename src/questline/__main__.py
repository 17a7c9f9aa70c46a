import uvicorn

from questline.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "questline.main:create_app",
        factory=True,
        host="0.0.0.0",  # noqa: S104
        port=8000,
        reload=settings.debug,
        log_config=None,  # logging is configured by questline.middleware.logging
    )


if __name__ == "__main__":
    main()
