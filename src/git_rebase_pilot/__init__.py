"""Drive git interactive rebases without git's editor prompts."""

__version__ = "0.1.0"
