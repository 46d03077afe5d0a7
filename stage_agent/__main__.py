"""Run the advisor HTTP server: ``python -m stage_agent``."""

import uvicorn

from stage_agent.adapters.web.server import app
from stage_agent.config import CONFIG


def main():
    uvicorn.run(app, host="0.0.0.0", port=CONFIG["port"], log_level="info")


if __name__ == "__main__":
    main()
