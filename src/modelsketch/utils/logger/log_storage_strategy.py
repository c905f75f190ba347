class LogStorageStrategy:
    """
    Base class for solver log sinks.
    Subclasses decide where a formatted log line ends up.
    """
    # STORE ONE LOG LINE
    def store_log(self, message, priority, timestamp):
        """
        Stores a log message with the given priority and timestamp.

        Parameters:
        message (str): The log message.
        priority (str): Name of the LogPriority the message was logged with.
        timestamp (str): Formatted time of the call.

        Raises:
        NotImplementedError: If a subclass does not provide a sink.
        """
        raise NotImplementedError()

    # DROP EVERYTHING STORED SO FAR
    def flush_logs(self):
        """
        Discards the stored log lines.

        Raises:
        NotImplementedError: If a subclass does not provide a sink.
        """
        raise NotImplementedError()
