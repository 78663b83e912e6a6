"""linkscope: a chat agent that answers posted links with their titles."""

__version__ = "0.3.0"
