"""Command-line tools for NeuralDoc.

``python -m neuraldoc.cli <command>`` runs the same ingestion and chat
services as the API against the SQLite repository, so documents and chat
history persist between invocations.

- ``ingest --file PATH [--mime-type T]`` -- ingest a local file and wait
- ``crawl --url URL`` -- crawl a site and wait
- ``ask "question" [--language L]`` -- answer from the stored documents
- ``documents`` -- list documents with their status
- ``delete --id ID`` -- delete one document and its chunks
- ``clear-chat`` -- clear the chat history
"""
