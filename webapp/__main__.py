import uvicorn

from webapp.context import LOG_LEVEL, PORT


def main() -> None:
    uvicorn.run("webapp.main:app", host="0.0.0.0", port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
