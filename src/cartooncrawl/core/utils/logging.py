"""Logging du crawler : console stderr, fichier optionnel, bibliothèques HTTP en sourdine."""

import logging
import sys
from pathlib import Path
from typing import Optional

APP_LOGGER = "cartooncrawl"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Une ligne INFO par requête : illisible sur un catalogue complet
_NOISY_LOGGERS = ("httpx", "httpcore")

_installed: list[logging.Handler] = []


def level_from_verbosity(verbosity: int) -> int:
    """0 -> WARNING, 1 -> INFO, 2+ -> DEBUG."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Installe les handlers du crawler sur le logger racine et retourne le logger 'cartooncrawl'.

    Rappeler la fonction remplace les handlers installés précédemment par elle,
    sans toucher à ceux posés par d'autres (pytest, application hôte).
    """
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    _installed.append(console)
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(level)
        _installed.append(file_handler)
    for handler in _installed:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    app = logging.getLogger(APP_LOGGER)
    app.setLevel(level)
    return app
