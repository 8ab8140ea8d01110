"""DevDose: turns open-source code snippets into bite-sized learning cards."""

__version__ = "0.1.0"
