"""TopicScout: topic research, scoring and categorization."""

__version__ = "0.3.0"
