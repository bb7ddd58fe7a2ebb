"""Terminal primitives: colours, cursor control and column alignment."""

from deploy_progress.term.tabwriter import TabbedFileWriter, TabWriter

__all__ = ["TabWriter", "TabbedFileWriter"]
