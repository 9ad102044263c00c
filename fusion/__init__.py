"""Client toolkit for the Football Fusion tournament escrow program."""

__version__ = "0.1.0"
