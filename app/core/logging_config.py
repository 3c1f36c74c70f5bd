import logging


def configure_logging(level_name: str = "INFO") -> None:
    """Set up root logging with a consistent format."""
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    )
