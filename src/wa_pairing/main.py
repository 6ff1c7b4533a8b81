"""Command line entrypoint that serves the pairing API."""

import uvicorn

from wa_pairing.config import Settings


def main() -> None:
    """Run the ASGI app with uvicorn using configured host and port."""
    settings = Settings()
    print(f"WA Pairing listening on {settings.host}:{settings.port}")
    uvicorn.run(
        "wa_pairing.api.asgi:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
