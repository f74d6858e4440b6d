import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, (level or "INFO").upper(), logging.INFO), format=LOG_FORMAT)
    # apscheduler logs every job execution at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
