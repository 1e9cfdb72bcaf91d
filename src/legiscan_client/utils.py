import logging


def logger_setup(logger_name="LegiScan Client", log_level=logging.INFO, propagate=False):
    """
    Return a named logger with a single console handler.
    Keeps the root logger untouched by disabling propagation.

    Args:
        logger_name (str): The name of the logger.
        log_level (int): The logging level (e.g., logging.INFO, logging.DEBUG).
        propagate (bool): Whether records also flow to ancestor loggers.

    Returns:
        logger (logging.Logger): Configured logger instance.
    """
    logger = logging.getLogger(logger_name)

    # one handler per named logger, even when several clients share a name
    if not logger.hasHandlers():
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s - raised_by: %(name)s',
            datefmt='%Y-%m-%d %H:%M:%S'
            )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    logger.setLevel(log_level)
    logger.propagate = propagate

    return logger
