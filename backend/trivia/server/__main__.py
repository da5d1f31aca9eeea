"""Run the trivia server: python -m trivia.server"""

import uvicorn

from trivia.server.settings import TriviaServerSettings


def main() -> None:
    settings = TriviaServerSettings()
    uvicorn.run(
        "trivia.server.app:get_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
        ws="auto",
    )


if __name__ == "__main__":
    main()
