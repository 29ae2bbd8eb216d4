import uvicorn

from .config import get_settings


def main():
    settings = get_settings()
    uvicorn.run("anonmsg.main:app", host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
