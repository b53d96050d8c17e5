"""Entry point: python -m shredbox"""

import uvicorn

from .config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "shredbox.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.lport,
    )


if __name__ == "__main__":
    main()
