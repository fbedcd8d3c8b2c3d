"""autoresolve - automated outcome resolution for overdue Sports/Esports prediction markets."""

__version__ = "0.1.0"
