"""
The CONTROLLER layer connects producers and renderers to the model:
the ingestion queue, the session context and the background workers.
"""
