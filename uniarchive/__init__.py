"""University document archive: REST API, client layer and Streamlit UI."""

__version__ = "1.0.0"
