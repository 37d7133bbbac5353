import threading

from importer import WorkbookImport
from models.config import Config


class SharedState:
    """
    Singleton holding the site currently being edited, shared between the
    CLI entry point and the web API.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.reset()
        return cls._instance

    def reset(self):
        """Drop the loaded site and config."""
        self.site = None
        self.raw_data = None
        self.sheet_names = []
        self.site_lock = threading.RLock()
        self.config = Config()
        self.config_lock = threading.Lock()
        self.config_path = None

    def set_import(self, result: WorkbookImport):
        """Replace the current site with a fresh import."""
        with self.site_lock:
            self.site = result.site
            self.raw_data = result.raw_data
            self.sheet_names = list(result.sheet_names)

    def set_config(self, config: Config, config_path=None):
        with self.config_lock:
            self.config = config
            self.config_path = config_path

    def get_config(self) -> Config:
        with self.config_lock:
            return self.config


# Global instance
state = SharedState()
