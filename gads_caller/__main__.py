"""
Run the relay with uvicorn: python -m gads_caller
"""
import uvicorn

from gads_caller.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "gads_caller.main:app",
        host=settings.app_host,
        port=settings.port,
        log_config=None,  # structured logging is configured by create_app()
    )


if __name__ == "__main__":
    main()
