"""Run the gateway with ``python -m chatbridge``."""

import uvicorn

from .main import SERVER_HOST, SERVER_PORT, app, logger


def main() -> None:
    logger.info(f"chatbridge listening on http://{SERVER_HOST}:{SERVER_PORT}")
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)


if __name__ == "__main__":
    main()
