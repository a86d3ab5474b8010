"""Grand Horizon concierge - retrieval-augmented hotel chatbot backend"""

__version__ = "1.0.0"
