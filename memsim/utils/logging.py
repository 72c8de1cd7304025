import logging
def get_logger(name:str="memsim"):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    return logging.getLogger(name)

def set_log_level(level: str, name: str = "memsim"):
    """Sets the level of the package logger from a name like 'DEBUG'."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    get_logger(name).setLevel(numeric)
