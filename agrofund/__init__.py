"""AgroFund — crowdfunding backend for agricultural projects."""

__version__ = "1.0.0"
