from .log_storage_strategy import LogStorageStrategy
import os
from datetime import datetime

class LocalFileStrategy(LogStorageStrategy):
    """
    Writes solver log lines to a file on disk.
    """

    # OPEN (OR RESET) THE TARGET FILE
    def __init__(self, file_location):
        """
        Args:
            file_location (str): Log file path, absolute or relative to the cwd.
        """
        self.file_location = self.resolve_file_path(file_location)
        self.initialize_log_file()

    def resolve_file_path(self, file_location):
        """
        Makes the path absolute and creates its parent directory.

        Returns:
            str: The absolute file path.
        """
        if not os.path.isabs(file_location):
            file_location = os.path.join(os.getcwd(), file_location)

        dir_name = os.path.dirname(file_location)
        if dir_name and not os.path.exists(dir_name):
            os.makedirs(dir_name)

        return file_location

    def initialize_log_file(self):
        """Starts a fresh log file, truncating an existing one."""
        if os.path.exists(self.file_location):
            self.flush_logs()
        else:
            with open(self.file_location, 'w') as log_file:
                log_file.write(f"LOG INITIALIZATION: {datetime.now()}\n")

    # APPEND ONE ENTRY
    def store_log(self, message, priority, timestamp):
        with open(self.file_location, 'a') as log_file:
            log_file.write(f"[{timestamp}] [{priority}] {message}\n")

    def flush_logs(self):
        """Truncates the log file and stamps the flush time."""
        with open(self.file_location, 'w') as log_file:
            log_file.truncate(0)
            log_file.write(f"LOG FLUSHED: {datetime.now()}\n")
