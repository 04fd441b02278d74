"""GovESB relay: FastAPI server forwarding requests through the ESB helper."""

__version__ = "0.1.0"
