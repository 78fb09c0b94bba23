import logging
import sys

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(log_path=None, verbose=False):
    """Log to the console and append to the persistent log file.

    A log file that cannot be opened is reported on the console and the
    run continues without it. Handler errors are never raised.
    """
    # Handler write failures must not abort a rotation half way
    logging.raiseExceptions = False

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    level = logging.DEBUG if verbose else logging.INFO
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_path:
        try:
            file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        except OSError as e:
            root.warning(f"Could not open log file {log_path}: {e}")
        else:
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    return root
