import uvicorn
from demogen.core.config import settings


def main() -> None:
    uvicorn.run("demogen.main:app", host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
