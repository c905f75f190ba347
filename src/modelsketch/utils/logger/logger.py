import threading
from datetime import datetime
from enum import Enum
import os
from .local_file_strategy import LocalFileStrategy

class Logger:
    """
    Process-wide static logger for the solver.

    Nothing is written until a storage strategy is installed, either with
    initialize() or set_log_storage_strategy().
    """

    class LogPriority(Enum):
        DEBUG = 1
        INFO = 2
        WARNING = 3
        ERROR = 4
        CRITICAL = 5
        DEFAULT = 6


    log_storage_strategy = None
    _log_lock = threading.Lock()
    _strategy_lock = threading.Lock()
    _initialize_lock = threading.Lock()

    # INSTALL DEFAULT FILE STRATEGY
    @classmethod
    def initialize(cls):
        """
        Installs a LocalFileStrategy at $MODELSKETCH_LOG_PATH
        (default /tmp/modelsketch_logs.txt) unless a strategy is already set.
        """
        with cls._initialize_lock:
            if cls.log_storage_strategy is None:
                default_path = "/tmp/modelsketch_logs.txt"
                file_location = os.getenv("MODELSKETCH_LOG_PATH", default_path)
                cls.set_log_storage_strategy(LocalFileStrategy(file_location))

                cls.log(f"Logger initialized with default file storage at {file_location}.",
                        cls.LogPriority.INFO)

    # LOG WITH MESSAGE AND PRIORITY
    @classmethod
    def log(cls, message, priority=LogPriority.DEBUG):
        """
        Hands a message to the storage strategy.

        Parameters:
        message (str): The log message.
        priority (LogPriority): Severity, DEBUG by default.
        """
        with cls._log_lock:
            if cls.log_storage_strategy:
                cls.log_storage_strategy.store_log(
                    message, priority.name, datetime.now().strftime("%Y-%m-%d %H:%M:%S")
                )

    @classmethod
    def set_log_storage_strategy(cls, log_storage_strategy):
        with cls._strategy_lock:
            cls.log_storage_strategy = log_storage_strategy

    @classmethod
    def reset(cls):
        """Removes the storage strategy; later calls to log() are dropped."""
        with cls._strategy_lock:
            cls.log_storage_strategy = None
