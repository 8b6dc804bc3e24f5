import uvicorn

from paperswift.config import settings


def main() -> None:
    uvicorn.run(
        'paperswift.main:app',
        host='127.0.0.1',
        port=5173,
        log_level=str(settings.log_level).lower(),
    )


if __name__ == '__main__':
    main()
