"""NeuralDoc: document ingestion and retrieval-augmented chat."""

__version__ = "0.1.0"
