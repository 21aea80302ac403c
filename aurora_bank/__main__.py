"""Run the API server: python -m aurora_bank"""

import uvicorn

from aurora_bank.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "aurora_bank.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=None,
    )


if __name__ == "__main__":
    main()
