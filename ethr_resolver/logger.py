import logging, json, sys, time, os


def get_logger(name="ethr", level=None, to_file=None):
    """
    Structured JSON logger shared by every resolver component.

    Each record is one JSON line on stdout: {"ts", "level", "name", "msg"},
    with UTC timestamps. Components log under "Ethr.<Component>"
    (Ethr.Resolver, Ethr.History, Ethr.Builder, Ethr.KeyEncoder,
    Ethr.Registry.RPC) with a bracketed tag opening the message, e.g.
    "[HISTORY] ...".

    The level defaults to ETHR_LOG_LEVEL (INFO when unset); an explicit
    `level` wins. Handlers are attached once per name, so `to_file` only
    takes effect on the first call for that name.
    """
    logger = logging.getLogger(name)
    if level is None:
        level = os.getenv("ETHR_LOG_LEVEL", "INFO").upper()
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt=json.dumps({
                "ts": "%(asctime)s",
                "level": "%(levelname)s",
                "name": "%(name)s",
                "msg": "%(message)s"
            }),
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        formatter.converter = time.gmtime  # UTC timestamps
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if to_file:
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
