import logging
import sys
from pathlib import Path

# Chatty transport loggers kept quiet unless running at DEBUG
NOISY_LOGGERS = ("urllib3", "werkzeug")


def setup_logging(log_file: str = None, level: str = "INFO") -> logging.Logger:
    """Configure the youtube_knowledge logger for stderr and an optional file."""
    level_value = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger("youtube_knowledge")
    root_logger.setLevel(level_value)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.DEBUG if level_value <= logging.DEBUG else logging.WARNING
        )

    # Avoid duplicate handlers on repeated calls
    if root_logger.handlers:
        return root_logger

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        # thread name distinguishes fetch and embed pool workers
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"
            )
        )
        root_logger.addHandler(file_handler)

    return root_logger
