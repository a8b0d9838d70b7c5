import logging

from fanplay.config import Config


def main():
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    missing = Config.validate()
    if missing:
        logging.getLogger(__name__).warning("Missing configuration: %s", ", ".join(missing))

    import uvicorn
    uvicorn.run("fanplay.main:app", host=Config.HOST, port=Config.PORT, log_level=Config.LOG_LEVEL.lower())

if __name__ == "__main__":
    main()
