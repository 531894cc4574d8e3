from proofbench.reporting.console import ConsoleProgressSink, LoggingProgressSink

__all__ = ["ConsoleProgressSink", "LoggingProgressSink"]
