"""
Runtime configuration for PillTracker.

Settings come from environment variables so the same code runs locally, in
tests (which point the data and key files at a temporary directory) and in a
deployed Streamlit app.
"""
# pilltracker/modules/config.py

import logging
import os

DEFAULT_DATA_FILE = 'records.json'
DEFAULT_KEY_FILE = 'secret.key'
DEFAULT_LOG_LEVEL = 'INFO'


class Settings:
    """Resolved application settings.

    Attributes:
        data_file (str): Path of the encrypted data file.
        key_file (str): Path of the Fernet key file.
        log_level (str): Name of the root logging level.
    """
    def __init__(self, data_file=DEFAULT_DATA_FILE, key_file=DEFAULT_KEY_FILE, log_level=DEFAULT_LOG_LEVEL):
        self.data_file = data_file
        self.key_file = key_file
        self.log_level = log_level

    @classmethod
    def from_env(cls, environ=None):
        """Reads settings from the environment, falling back to the defaults."""
        environ = os.environ if environ is None else environ
        return cls(
            data_file=environ.get('PILLTRACKER_DATA_FILE', DEFAULT_DATA_FILE),
            key_file=environ.get('PILLTRACKER_KEY_FILE', DEFAULT_KEY_FILE),
            log_level=environ.get('PILLTRACKER_LOG_LEVEL', DEFAULT_LOG_LEVEL).upper(),
        )


def configure_logging(settings: Settings):
    """Sets up root logging once for the app process."""
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
