"""MyImpact: merged and reviewed pull request activity, summaries and saved reports."""

__version__ = "0.1.0"
