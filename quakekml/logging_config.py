import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT, force=True)
    # requests/urllib3 are noisy at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
