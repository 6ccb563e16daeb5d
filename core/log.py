import sys
import logging

# third-party loggers that drown out envelope/decoder output at DEBUG
NOISY_LOGGERS = ("urllib3", "aiohttp", "asyncio", "web3", "web3.providers", "web3.RequestManager")


def setup_logging(debug: bool, to_file: str | None = None) -> None:
    level = logging.DEBUG if debug else logging.INFO

    # stdout carries the JSON result, log lines go to stderr
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if to_file:
        handlers.append(logging.FileHandler(to_file, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
