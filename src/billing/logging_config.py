import logging


def setup_logging(level=logging.INFO):
    """Sets up basic logging for the app and the admin CLI."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
    )
