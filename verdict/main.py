"""Process entry point for the daily verdict API.

    daily-verdict                      # console script from pyproject
    uvicorn verdict.main:app           # any ASGI server

The game runs behind the hosting platform's gateway, which authenticates
players and forwards their identity headers, so uvicorn trusts proxy
headers. Logging is owned by setup_logging(); uvicorn's own dictConfig
is disabled so every line comes out in one format.
"""

import uvicorn

from verdict.api.app import create_app
from verdict.api.dependencies import get_settings

app = create_app(get_settings())


def main() -> None:
    """Serve the app; with SCHEDULER_ENABLED the sweeps run in-process."""
    settings = get_settings()
    uvicorn.run(
        "verdict.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
        log_level=settings.log_level.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
        reload=settings.debug,
        # One worker: the in-process scheduler must not run twice per host.
        workers=1,
    )


if __name__ == "__main__":
    main()
