"""Plan and run a search → analyze → write job hunting workflow against Gemini."""

__version__ = "0.1.0"
