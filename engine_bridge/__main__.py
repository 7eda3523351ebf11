from __future__ import annotations

import uvicorn
from dotenv import load_dotenv

from engine_bridge.settings import project_root, settings_from_env


def main() -> None:
    # Local runs: pick up ENGINE_PATH / PORT from the repo .env without overriding the shell.
    load_dotenv(dotenv_path=project_root() / ".env", override=False)
    settings = settings_from_env()

    from engine_bridge.main import create_app

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
