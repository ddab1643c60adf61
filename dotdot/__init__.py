"""dotdot - manage a workspace of independently-versioned git repositories."""

__version__ = "0.1.0"
