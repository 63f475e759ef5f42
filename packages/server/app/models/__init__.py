# Importing the models populates SQLModel metadata for create_all.
from .channel import Channel  # noqa: F401
