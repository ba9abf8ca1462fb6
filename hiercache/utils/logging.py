import logging
def get_logger(name: str = "hiercache", level: int = logging.INFO):
    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s")
    return logging.getLogger(name)
